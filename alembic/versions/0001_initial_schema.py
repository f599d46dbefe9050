"""initial school erp schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2024-06-01 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision = '0001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def _base_columns():
    return [
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column('is_deleted', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.PrimaryKeyConstraint('id'),
    ]


def _fk(column, target, nullable=False):
    return sa.Column(column, sa.Uuid(), sa.ForeignKey(target), nullable=nullable)


def _create(table, *columns, indexes=(), unique_indexes=()):
    op.create_table(table, *_base_columns(), *columns)
    for column in ('id', 'created_at', 'is_deleted', *indexes):
        op.create_index(op.f(f'ix_{table}_{column}'), table, [column])
    for column in unique_indexes:
        op.create_index(op.f(f'ix_{table}_{column}'), table, [column], unique=True)


TABLES = [
    'notifications', 'payments', 'leave_requests', 'certificates', 'newsletters', 'notices',
    'messages', 'conversation_participants', 'conversations', 'buses',
    'inventory_transactions', 'inventory_items', 'hostel_allocations', 'hostel_rooms', 'hostels',
    'book_issues', 'books', 'learning_contents', 'exam_results', 'exam_papers', 'exams',
    'attendance_records', 'attendance_sessions', 'class_subjects', 'parent_students', 'parents',
    'teachers', 'students', 'subjects', 'classes', 'users', 'schools',
]


def upgrade() -> None:
    _create('schools',
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('code', sa.String(20), nullable=False),
        sa.Column('address', sa.String(500)),
        sa.Column('email', sa.String(254)),
        sa.Column('phone', sa.String(20)),
        sa.Column('website', sa.String(254)),
        sa.Column('logo', sa.String(500)),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('latitude', sa.Float()),
        sa.Column('longitude', sa.Float()),
        sa.Column('radius_meters', sa.Integer()),
        sa.CheckConstraint('radius_meters IS NULL OR radius_meters > 0', name='check_radius_positive'),
        indexes=('name',),
        unique_indexes=('code',),
    )

    _create('users',
        _fk('school_id', 'schools.id', nullable=True),
        sa.Column('email', sa.String(254), nullable=False),
        sa.Column('password', sa.String(255), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('role', sa.String(32), nullable=False),
        sa.Column('phone', sa.String(20)),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        indexes=('school_id', 'role'),
        unique_indexes=('email',),
    )

    # Academics
    _create('classes',
        _fk('school_id', 'schools.id'),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('grade', sa.String(20)),
        sa.Column('sections', sa.JSON(), nullable=False),
        sa.UniqueConstraint('school_id', 'name', name='unique_class_name_per_school'),
        indexes=('school_id',),
    )
    _create('subjects',
        _fk('school_id', 'schools.id'),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('code', sa.String(20)),
        indexes=('school_id',),
    )

    # People
    _create('students',
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False, unique=True),
        _fk('school_id', 'schools.id'),
        _fk('class_id', 'classes.id', nullable=True),
        sa.Column('admission_number', sa.String(50)),
        sa.Column('grade', sa.String(20)),
        sa.Column('section', sa.String(10)),
        sa.Column('date_of_birth', sa.Date()),
        sa.Column('address', sa.String(500)),
        indexes=('school_id', 'class_id', 'admission_number'),
    )
    _create('teachers',
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False, unique=True),
        _fk('school_id', 'schools.id'),
        sa.Column('qualification', sa.String(200)),
        sa.Column('specialization', sa.String(200)),
        indexes=('school_id',),
    )
    _create('parents',
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False, unique=True),
        _fk('school_id', 'schools.id'),
        sa.Column('occupation', sa.String(100)),
        indexes=('school_id',),
    )
    _create('parent_students',
        _fk('parent_id', 'parents.id'),
        _fk('student_id', 'students.id'),
        sa.Column('relationship_type', sa.String(30)),
        sa.Column('is_primary', sa.Boolean(), nullable=False),
        sa.UniqueConstraint('parent_id', 'student_id', name='unique_parent_student'),
        indexes=('parent_id', 'student_id'),
    )
    _create('class_subjects',
        _fk('class_id', 'classes.id'),
        _fk('subject_id', 'subjects.id'),
        _fk('teacher_id', 'teachers.id', nullable=True),
        sa.Column('periods_per_week', sa.Integer()),
        sa.UniqueConstraint('class_id', 'subject_id', name='unique_subject_per_class'),
        indexes=('class_id', 'subject_id', 'teacher_id'),
    )

    # Attendance
    _create('attendance_sessions',
        _fk('school_id', 'schools.id'),
        _fk('class_id', 'classes.id'),
        sa.Column('date', sa.Date(), nullable=False),
        _fk('marked_by', 'users.id', nullable=True),
        sa.UniqueConstraint('class_id', 'date', name='unique_session_per_class_day'),
        indexes=('school_id', 'class_id', 'date'),
    )
    _create('attendance_records',
        _fk('session_id', 'attendance_sessions.id'),
        _fk('student_id', 'students.id'),
        sa.Column('status', sa.String(32), nullable=False),
        sa.UniqueConstraint('session_id', 'student_id', name='unique_record_per_session'),
        indexes=('session_id', 'student_id'),
    )

    # Exams and e-learning
    _create('exams',
        _fk('school_id', 'schools.id'),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('term', sa.String(20)),
        sa.Column('year', sa.Integer()),
        indexes=('school_id',),
    )
    _create('exam_papers',
        _fk('exam_id', 'exams.id'),
        _fk('subject_id', 'subjects.id'),
        sa.Column('questions', sa.JSON(), nullable=False),
        sa.Column('duration_minutes', sa.Integer()),
        sa.Column('total_marks', sa.Integer()),
        sa.Column('instructions', sa.Text()),
        sa.Column('status', sa.String(20), nullable=False),
        sa.UniqueConstraint('exam_id', 'subject_id', name='unique_paper_per_subject'),
        indexes=('exam_id', 'subject_id'),
    )
    _create('exam_results',
        _fk('exam_id', 'exams.id'),
        _fk('subject_id', 'subjects.id'),
        _fk('student_id', 'students.id'),
        sa.Column('score', sa.Float(), nullable=False),
        sa.UniqueConstraint('exam_id', 'subject_id', 'student_id', name='unique_result_per_student'),
        indexes=('exam_id', 'subject_id', 'student_id'),
    )
    _create('learning_contents',
        _fk('school_id', 'schools.id'),
        sa.Column('kind', sa.String(32), nullable=False),
        _fk('subject_id', 'subjects.id'),
        _fk('class_id', 'classes.id', nullable=True),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('content', sa.Text()),
        sa.Column('attachment_url', sa.String(500)),
        sa.Column('due_date', sa.DateTime(timezone=True)),
        _fk('created_by', 'users.id', nullable=True),
        indexes=('school_id', 'kind', 'subject_id', 'class_id'),
    )

    # Library
    _create('books',
        _fk('school_id', 'schools.id'),
        sa.Column('title', sa.String(300), nullable=False),
        sa.Column('author', sa.String(200)),
        sa.Column('isbn', sa.String(20)),
        sa.Column('category', sa.String(100)),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('available', sa.Integer(), nullable=False),
        sa.CheckConstraint('available >= 0', name='check_available_non_negative'),
        indexes=('school_id', 'title', 'isbn'),
    )
    _create('book_issues',
        _fk('book_id', 'books.id'),
        _fk('student_id', 'students.id'),
        sa.Column('issue_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('due_date', sa.DateTime(timezone=True)),
        sa.Column('return_date', sa.DateTime(timezone=True)),
        sa.Column('status', sa.String(32), nullable=False),
        indexes=('book_id', 'student_id', 'status'),
    )

    # Hostel
    _create('hostels',
        _fk('school_id', 'schools.id'),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('type', sa.String(20), nullable=False),
        sa.Column('address', sa.String(500)),
        sa.Column('warden_name', sa.String(200)),
        sa.Column('warden_phone', sa.String(20)),
        indexes=('school_id',),
    )
    _create('hostel_rooms',
        _fk('hostel_id', 'hostels.id'),
        sa.Column('room_number', sa.String(20), nullable=False),
        sa.Column('floor', sa.Integer()),
        sa.Column('capacity', sa.Integer(), nullable=False),
        sa.CheckConstraint('capacity > 0', name='check_capacity_positive'),
        indexes=('hostel_id',),
    )
    _create('hostel_allocations',
        _fk('room_id', 'hostel_rooms.id'),
        _fk('student_id', 'students.id'),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date()),
        sa.Column('status', sa.String(32), nullable=False),
        indexes=('room_id', 'student_id', 'status'),
    )

    # Inventory and transport
    _create('inventory_items',
        _fk('school_id', 'schools.id'),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('category', sa.String(100)),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit', sa.String(20)),
        sa.Column('min_quantity', sa.Integer(), nullable=False),
        sa.Column('location', sa.String(200)),
        sa.CheckConstraint('quantity >= 0', name='check_quantity_non_negative'),
        indexes=('school_id',),
    )
    _create('inventory_transactions',
        _fk('item_id', 'inventory_items.id'),
        sa.Column('type', sa.String(32), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('notes', sa.Text()),
        _fk('performed_by', 'users.id', nullable=True),
        indexes=('item_id',),
    )
    _create('buses',
        _fk('school_id', 'schools.id'),
        sa.Column('number_plate', sa.String(20), nullable=False),
        sa.Column('route_name', sa.String(200)),
        sa.Column('driver_name', sa.String(200)),
        sa.Column('driver_phone', sa.String(20)),
        sa.Column('pickup_time', sa.String(10)),
        sa.Column('arrival_time', sa.String(10)),
        sa.Column('has_started', sa.Boolean(), nullable=False),
        sa.Column('has_arrived', sa.Boolean(), nullable=False),
        indexes=('school_id',),
    )

    # Messaging
    _create('conversations',
        _fk('school_id', 'schools.id', nullable=True),
        indexes=('school_id',),
    )
    _create('conversation_participants',
        _fk('conversation_id', 'conversations.id'),
        _fk('user_id', 'users.id'),
        sa.Column('last_read_at', sa.DateTime(timezone=True)),
        sa.UniqueConstraint('conversation_id', 'user_id', name='unique_participant'),
        indexes=('conversation_id', 'user_id'),
    )
    _create('messages',
        _fk('conversation_id', 'conversations.id'),
        _fk('sender_id', 'users.id'),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('sent_at', sa.DateTime(timezone=True), nullable=False),
        indexes=('conversation_id', 'sender_id', 'sent_at'),
    )

    # Notices, newsletters, certificates
    _create('notices',
        _fk('school_id', 'schools.id'),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('audience', sa.String(20), nullable=False),
        _fk('author_id', 'users.id', nullable=True),
        indexes=('school_id',),
    )
    _create('newsletters',
        _fk('school_id', 'schools.id'),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('cover_image', sa.String(500)),
        sa.Column('published_at', sa.DateTime(timezone=True), nullable=False),
        _fk('author_id', 'users.id', nullable=True),
        indexes=('school_id',),
    )
    _create('certificates',
        _fk('school_id', 'schools.id'),
        _fk('student_id', 'students.id'),
        sa.Column('type', sa.String(50), nullable=False),
        sa.Column('reference_number', sa.String(40), nullable=False, unique=True),
        sa.Column('issued_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('details', sa.JSON()),
        indexes=('school_id', 'student_id'),
    )

    # Leaves and gate passes
    _create('leave_requests',
        _fk('school_id', 'schools.id'),
        _fk('student_id', 'students.id'),
        sa.Column('reason', sa.Text(), nullable=False),
        sa.Column('type', sa.String(32), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(32), nullable=False),
        _fk('parent_approved_by', 'users.id', nullable=True),
        sa.Column('parent_approved_at', sa.DateTime(timezone=True)),
        _fk('admin_approved_by', 'users.id', nullable=True),
        sa.Column('admin_approved_at', sa.DateTime(timezone=True)),
        sa.Column('admin_comment', sa.Text()),
        sa.Column('gate_pass_code', sa.String(20), unique=True),
        indexes=('school_id', 'student_id', 'status'),
    )

    # Finance
    _create('payments',
        _fk('school_id', 'schools.id'),
        _fk('student_id', 'students.id'),
        sa.Column('amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('method', sa.String(32), nullable=False),
        sa.Column('paid_on', sa.Date(), nullable=False),
        sa.Column('reference', sa.String(100)),
        _fk('recorded_by', 'users.id', nullable=True),
        sa.Column('synced_to_tally', sa.Boolean(), nullable=False),
        sa.CheckConstraint('amount > 0', name='check_amount_positive'),
        indexes=('school_id', 'student_id', 'paid_on'),
    )

    _create('notifications',
        _fk('user_id', 'users.id'),
        _fk('school_id', 'schools.id', nullable=True),
        sa.Column('type', sa.String(30), nullable=False),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('message', sa.Text()),
        sa.Column('link', sa.String(300)),
        sa.Column('is_read', sa.Boolean(), nullable=False),
        indexes=('user_id', 'school_id', 'is_read'),
    )


def downgrade() -> None:
    for table in TABLES:
        op.drop_table(table)
