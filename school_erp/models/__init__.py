from .base import Base
from .school import School
from .user import User, Role
from .academic import SchoolClass, Subject, ClassSubject
from .people import Student, Teacher, Parent, ParentStudent
from .attendance import AttendanceSession, AttendanceRecord, AttendanceStatus
from .exam import Exam, ExamPaper, ExamResult
from .learning import LearningContent, ContentKind
from .library import Book, BookIssue, IssueStatus
from .hostel import Hostel, HostelRoom, HostelAllocation, AllocationStatus
from .inventory import InventoryItem, InventoryTransaction, TransactionType
from .transport import Bus
from .messaging import Conversation, ConversationParticipant, Message
from .notice import Notice, Newsletter, Certificate
from .leave import LeaveRequest, LeaveStatus, LeaveType
from .finance import Payment, PaymentMethod
from .notification import Notification

__all__ = [
    "Base", "School", "User", "Role",
    "SchoolClass", "Subject", "ClassSubject",
    "Student", "Teacher", "Parent", "ParentStudent",
    "AttendanceSession", "AttendanceRecord", "AttendanceStatus",
    "Exam", "ExamPaper", "ExamResult",
    "LearningContent", "ContentKind",
    "Book", "BookIssue", "IssueStatus",
    "Hostel", "HostelRoom", "HostelAllocation", "AllocationStatus",
    "InventoryItem", "InventoryTransaction", "TransactionType",
    "Bus",
    "Conversation", "ConversationParticipant", "Message",
    "Notice", "Newsletter", "Certificate",
    "LeaveRequest", "LeaveStatus", "LeaveType",
    "Payment", "PaymentMethod",
    "Notification",
]
