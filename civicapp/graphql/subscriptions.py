"""
GraphQL subscriptions for real-time updates

civicapp/graphql/subscriptions.py

"""
import strawberry
from typing import AsyncGenerator, Optional
from civicapp.graphql.types import EventType
from civicapp.services.notifications import notification_bus


@strawberry.type
class Subscription:
    @strawberry.subscription
    async def events(self, room: Optional[str] = None) -> AsyncGenerator[EventType, None]:
        """Stream state-change events; `room` narrows to one complaint, post or community"""
        async for message in notification_bus.listen(room):
            yield EventType(
                event=message.event,
                room=message.room,
                payload=message.payload,
                emitted_at=message.emitted_at,
            )
