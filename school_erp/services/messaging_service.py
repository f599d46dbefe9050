import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Set
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_, and_

from .academic_service import ensure_class_access
from .notification_service import NotificationService
from .people_service import StudentService
from .user_service import UserService
from ..core.exceptions import NotFoundError, PermissionDenied, ValidationError
from ..models.messaging import Conversation, ConversationParticipant, Message
from ..models.user import User, Role
from ..utils.json_store import DepartmentStore

logger = logging.getLogger(__name__)

# Which roles each role may start a conversation with
MESSAGING_RULES: Dict[Role, Set[Role]] = {
    Role.ADMIN: {Role.SCHOOL_ADMIN},
    Role.SCHOOL_ADMIN: {Role.TEACHER, Role.PARENT, Role.ADMIN},
    Role.TEACHER: {Role.PARENT, Role.STUDENT, Role.SCHOOL_ADMIN},
    Role.PARENT: {Role.TEACHER, Role.SCHOOL_ADMIN},
    Role.STUDENT: {Role.TEACHER},
    Role.STAFF: {Role.SCHOOL_ADMIN},
}

BROADCAST_SCOPES: Dict[Role, Set[str]] = {
    Role.ADMIN: {"school_admin_all"},
    Role.SCHOOL_ADMIN: {"teachers_all", "parents_all", "school_admin_all", "school_admin_department"},
    Role.TEACHER: {"class_students", "class_parents"},
}


def can_message(sender: User, recipient: User) -> bool:
    if sender.id == recipient.id:
        return False
    if recipient.role not in MESSAGING_RULES.get(sender.role, set()):
        return False
    if sender.is_super_admin or recipient.is_super_admin:
        return True
    return sender.school_id is not None and sender.school_id == recipient.school_id


def _now() -> datetime:
    return datetime.now(timezone.utc)


class MessagingService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.notifications = NotificationService(db)

    async def _participant(self, conversation_id: UUID, user_id: UUID) -> ConversationParticipant:
        stmt = select(ConversationParticipant).where(
            ConversationParticipant.conversation_id == conversation_id,
            ConversationParticipant.user_id == user_id,
        )
        participant = (await self.db.execute(stmt)).scalar_one_or_none()
        if not participant:
            raise NotFoundError("Conversation")
        return participant

    async def find_direct_conversation(self, user_a: UUID, user_b: UUID) -> Optional[Conversation]:
        """An existing conversation with exactly these two participants."""
        stmt = (
            select(Conversation)
            .join(ConversationParticipant, ConversationParticipant.conversation_id == Conversation.id)
            .where(ConversationParticipant.user_id == user_a, Conversation.is_deleted == False)
        )
        for conversation in (await self.db.execute(stmt)).scalars().all():
            members = {p.user_id for p in conversation.participants}
            if members == {user_a, user_b}:
                return conversation
        return None

    async def _direct_conversation(self, sender: User, recipient: User) -> Conversation:
        conversation = await self.find_direct_conversation(sender.id, recipient.id)
        if conversation:
            return conversation
        conversation = Conversation(school_id=recipient.school_id or sender.school_id)
        conversation.participants = [
            ConversationParticipant(user_id=sender.id),
            ConversationParticipant(user_id=recipient.id),
        ]
        self.db.add(conversation)
        await self.db.flush()
        return conversation

    async def _stage_message(self, sender: User, recipient: User, content: str) -> Message:
        conversation = await self._direct_conversation(sender, recipient)
        sent_at = _now()
        message = Message(
            conversation_id=conversation.id,
            sender_id=sender.id,
            content=content,
            sent_at=sent_at,
        )
        self.db.add(message)
        for participant in conversation.participants:
            if participant.user_id == sender.id:
                participant.last_read_at = sent_at
        self.notifications.notify(
            recipient.id,
            "MESSAGE",
            f"New message from {sender.name}",
            message=content[:200],
            link=f"/messages/{conversation.id}",
            school_id=recipient.school_id,
        )
        return message

    async def send(self, sender: User, recipient_id: UUID, content: str) -> Message:
        if not content or not content.strip():
            raise ValidationError("Message content is required", field="content")
        recipient = await UserService(self.db).get(recipient_id)
        if not recipient or not recipient.is_active:
            raise NotFoundError("Recipient")
        if not can_message(sender, recipient):
            raise PermissionDenied("You are not allowed to message this user")

        message = await self._stage_message(sender, recipient, content.strip())
        await self.db.commit()
        await self.db.refresh(message)
        return message

    async def list_conversations(self, user: User) -> List[dict]:
        stmt = (
            select(Conversation)
            .join(ConversationParticipant, ConversationParticipant.conversation_id == Conversation.id)
            .where(ConversationParticipant.user_id == user.id, Conversation.is_deleted == False)
        )
        conversations = (await self.db.execute(stmt)).scalars().all()
        visible_roles = MESSAGING_RULES.get(user.role, set())

        items = []
        for conversation in conversations:
            others = [p.user for p in conversation.participants if p.user_id != user.id]
            if not others or any(o.role not in visible_roles for o in others):
                continue
            me = next(p for p in conversation.participants if p.user_id == user.id)

            last_stmt = (
                select(Message)
                .where(Message.conversation_id == conversation.id)
                .order_by(Message.sent_at.desc())
                .limit(1)
            )
            last_message = (await self.db.execute(last_stmt)).scalar_one_or_none()

            unread_stmt = select(func.count()).select_from(Message).where(
                Message.conversation_id == conversation.id,
                Message.sender_id != user.id,
            )
            if me.last_read_at is not None:
                unread_stmt = unread_stmt.where(Message.sent_at > me.last_read_at)
            unread = (await self.db.execute(unread_stmt)).scalar()

            items.append({
                "conversation": conversation,
                "participants": others,
                "last_message": last_message,
                "unread_count": unread,
            })

        items.sort(
            key=lambda i: i["last_message"].sent_at.isoformat() if i["last_message"] else "",
            reverse=True,
        )
        return items

    async def messages(self, user: User, conversation_id: UUID) -> List[Message]:
        await self._participant(conversation_id, user.id)
        stmt = (
            select(Message)
            .where(Message.conversation_id == conversation_id, Message.is_deleted == False)
            .order_by(Message.sent_at.asc())
        )
        return (await self.db.execute(stmt)).scalars().all()

    async def mark_read(self, user: User, conversation_id: UUID) -> ConversationParticipant:
        participant = await self._participant(conversation_id, user.id)
        participant.last_read_at = _now()
        await self.db.commit()
        return participant

    async def recipients(self, user: User) -> List[User]:
        roles = MESSAGING_RULES.get(user.role, set())
        if not roles:
            return []
        conditions = []
        for role in roles:
            if user.is_super_admin or role == Role.ADMIN:
                conditions.append(User.role == role)
            else:
                conditions.append(and_(User.role == role, User.school_id == user.school_id))
        stmt = (
            select(User)
            .where(or_(*conditions), User.id != user.id, User.is_active == True, User.is_deleted == False)
            .order_by(User.name)
        )
        return (await self.db.execute(stmt)).scalars().all()

    async def _broadcast_targets(
        self,
        sender: User,
        scope: str,
        class_ids: Optional[List[UUID]],
        department: Optional[str],
        department_store: Optional[DepartmentStore],
    ) -> List[UUID]:
        users = UserService(self.db)
        students = StudentService(self.db)

        if scope == "school_admin_all":
            school_filter = None if sender.is_super_admin else sender.school_id
            return await users.ids_by_role(school_filter, Role.SCHOOL_ADMIN)
        if scope == "teachers_all":
            return await users.ids_by_role(sender.school_id, Role.TEACHER)
        if scope == "parents_all":
            return await users.ids_by_role(sender.school_id, Role.PARENT)
        if scope == "school_admin_department":
            if not department or department_store is None:
                raise ValidationError("department is required for this scope", field="department")
            staff = await department_store.get_staff(department, sender.school_id)
            return [UUID(s) for s in staff]
        if scope in ("class_students", "class_parents"):
            if not class_ids:
                raise ValidationError("class_ids is required for this scope", field="class_ids")
            targets = []
            for class_id in class_ids:
                await ensure_class_access(self.db, sender, class_id=class_id)
                in_class = await students.list_in_class(class_id)
                if scope == "class_students":
                    targets.extend(s.user_id for s in in_class)
                else:
                    targets.extend(await students.parent_user_ids([s.id for s in in_class]))
            return targets
        raise ValidationError(f"Unknown broadcast scope: {scope}", field="scope")

    async def broadcast(
        self,
        sender: User,
        content: str,
        scope: str,
        class_ids: Optional[List[UUID]] = None,
        department: Optional[str] = None,
        department_store: Optional[DepartmentStore] = None,
    ) -> int:
        """Send the same message to every user in ``scope``; returns how many received it."""
        if not content or not content.strip():
            raise ValidationError("Message content is required", field="content")
        if scope not in BROADCAST_SCOPES.get(sender.role, set()):
            raise PermissionDenied(f"Broadcast scope '{scope}' is not allowed for your role")

        target_ids = await self._broadcast_targets(sender, scope, class_ids, department, department_store)
        users = UserService(self.db)
        count = 0
        for user_id in dict.fromkeys(target_ids):
            if user_id == sender.id:
                continue
            recipient = await users.get(user_id)
            if not recipient or not recipient.is_active:
                continue
            await self._stage_message(sender, recipient, content.strip())
            count += 1
        await self.db.commit()
        logger.info(f"Broadcast '{scope}' from {sender.id} delivered to {count} users")
        return count
