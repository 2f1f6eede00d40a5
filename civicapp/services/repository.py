"""
Document persistence with atomic single-document read-modify-write

civicapp/services/repository.py

"""
from typing import Any, Callable, Dict, Generic, Iterable, List, Optional, Tuple, Type, TypeVar
from bson import ObjectId
from bson.errors import InvalidId
from pydantic import ValidationError
from pymongo.errors import DuplicateKeyError, PyMongoError
from civicapp.core.config import settings
from civicapp.core.database import get_database
from civicapp.core.exceptions import InvalidState, NotFound, PersistenceFailure
from civicapp.models.base import BaseDocument
from civicapp.models.comment import Comment
from civicapp.models.community import Community
from civicapp.models.complaint import Complaint
from civicapp.models.post import CommunityPost
from civicapp.models.user import User
import logging

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseDocument)
R = TypeVar("R")


def to_object_id(value: str) -> Optional[ObjectId]:
    """Parse a hex id, returning None for anything malformed"""
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


class DocumentRepository(Generic[T]):
    """
    Loads and stores one entity type.

    `mutate` applies a pure function to the stored entity and writes the
    result back only if nobody else wrote the document in between (the
    `version` field is compared and bumped). A lost race re-reads and
    re-applies; running out of attempts is a persistence failure.
    """
    def __init__(self, collection_name: str, model: Type[T], label: str):
        self.collection_name = collection_name
        self.model = model
        self.label = label

    @property
    def collection(self):
        return get_database()[self.collection_name]

    def not_found(self) -> NotFound:
        return NotFound(f"{self.label} not found")

    async def find(self, entity_id: str) -> Optional[T]:
        oid = to_object_id(entity_id)
        if oid is None:
            return None
        try:
            doc = await self.collection.find_one({"_id": oid})
        except PyMongoError as e:
            logger.error(f"Error loading {self.label} {entity_id}: {e}")
            raise PersistenceFailure(f"Could not load {self.label.lower()}")
        return self.model.from_mongo(doc) if doc else None

    async def get(self, entity_id: str) -> T:
        entity = await self.find(entity_id)
        if entity is None:
            raise self.not_found()
        return entity

    async def find_many(self, entity_ids: Iterable[str]) -> Dict[str, T]:
        """Load several entities by id; ids that no longer resolve are skipped"""
        oids = [oid for oid in (to_object_id(i) for i in set(entity_ids)) if oid is not None]
        if not oids:
            return {}
        found = {}
        try:
            async for doc in self.collection.find({"_id": {"$in": oids}}):
                entity = self.model.from_mongo(doc)
                found[entity.id] = entity
        except PyMongoError as e:
            logger.error(f"Error loading {self.label} batch: {e}")
            raise PersistenceFailure(f"Could not load {self.label.lower()}s")
        return found

    async def insert(self, entity: T) -> T:
        doc = entity.to_mongo()
        doc.pop("_id", None)
        try:
            result = await self.collection.insert_one(doc)
        except DuplicateKeyError:
            raise InvalidState(f"{self.label} already exists")
        except PyMongoError as e:
            logger.error(f"Error inserting {self.label}: {e}")
            raise PersistenceFailure(f"Could not save {self.label.lower()}")
        return entity.model_copy(update={"id": str(result.inserted_id)})

    async def mutate(self, entity_id: str, change: Callable[[T], Any]) -> Tuple[T, Any]:
        """
        Atomically apply `change` to the stored entity.

        `change` receives the current entity and returns either the updated
        entity or a `(entity, result)` tuple. Domain errors raised by `change`
        propagate untouched and nothing is written.
        """
        for attempt in range(1, settings.MUTATION_MAX_ATTEMPTS + 1):
            current = await self.get(entity_id)
            outcome = change(current)
            updated, result = outcome if isinstance(outcome, tuple) else (outcome, None)
            try:
                # Copies made by the ledger functions skip validation
                updated = self.model.model_validate(updated.model_dump(by_alias=True))
            except ValidationError as e:
                logger.warning(f"Rejected invalid {self.label} {entity_id}: {e}")
                raise InvalidState(f"{self.label} update is not valid")

            doc = updated.to_mongo()
            doc["version"] = current.version + 1
            try:
                write = await self.collection.replace_one(
                    {"_id": ObjectId(current.id), "version": current.version},
                    doc,
                )
            except DuplicateKeyError:
                raise InvalidState(f"{self.label} already exists")
            except PyMongoError as e:
                logger.error(f"Error writing {self.label} {entity_id}: {e}")
                raise PersistenceFailure(f"Could not save {self.label.lower()}")

            if write.matched_count == 1:
                return updated.model_copy(update={"version": current.version + 1}), result

            logger.info(f"Concurrent write on {self.label} {entity_id}, retrying (attempt {attempt})")

        raise PersistenceFailure(f"{self.label} is being modified too often, please retry")

    async def add_reference(self, entity_id: str, field: str, value: str) -> bool:
        """Append an id to a reference list; returns False if the entity is gone"""
        return await self._update_fields(entity_id, {"$addToSet": {field: value}})

    async def remove_reference(self, entity_id: str, field: str, value: str) -> bool:
        return await self._update_fields(entity_id, {"$pull": {field: value}})

    async def increment(self, entity_id: str, field: str, amount: int = 1) -> bool:
        """Bump a counter field in place"""
        return await self._update_fields(entity_id, {"$inc": {field: amount}})

    async def _update_fields(self, entity_id: str, update: Dict[str, Any]) -> bool:
        oid = to_object_id(entity_id)
        if oid is None:
            return False
        # Bumping the version makes an in-flight mutate re-read instead of overwriting
        update = {**update, "$inc": {**update.get("$inc", {}), "version": 1}}
        try:
            result = await self.collection.update_one({"_id": oid}, update)
        except PyMongoError as e:
            logger.error(f"Error updating {self.label} {entity_id}: {e}")
            raise PersistenceFailure(f"Could not save {self.label.lower()}")
        return result.matched_count == 1

    async def list(
        self,
        query: Dict[str, Any],
        sort: List[Tuple[str, int]],
        skip: int = 0,
        limit: int = 0,
    ) -> Tuple[List[T], int]:
        """One page of entities plus the total count for the query"""
        try:
            cursor = self.collection.find(query).sort(sort).skip(skip)
            if limit:
                cursor = cursor.limit(limit)
            items = [self.model.from_mongo(doc) async for doc in cursor]
            total = await self.collection.count_documents(query)
        except PyMongoError as e:
            logger.error(f"Error listing {self.label}: {e}")
            raise PersistenceFailure(f"Could not load {self.label.lower()}s")
        return items, total

    async def count(self, query: Dict[str, Any]) -> int:
        try:
            return await self.collection.count_documents(query)
        except PyMongoError as e:
            logger.error(f"Error counting {self.label}: {e}")
            raise PersistenceFailure(f"Could not load {self.label.lower()}s")


complaints = DocumentRepository("complaints", Complaint, "Complaint")
comments = DocumentRepository("comments", Comment, "Comment")
communities = DocumentRepository("communities", Community, "Community")
posts = DocumentRepository("community_posts", CommunityPost, "Post")
users = DocumentRepository("users", User, "User")
