from .user import User, UserRole
from .workspace import Workspace, WorkspaceType
from .membership import WorkspaceMember, MembershipRole
from .task import Task
from .compliance import ComplianceTemplate, ChecklistInstance
from .order import Order
from .roster import Roster
from .stocktake import Stocktake
from .invoice import Invoice
from .takings import WeeklyTakings
from .calendar_connection import CalendarConnection
from .subscription import Subscription
from .directory import Supplier, Product, StaffMember
from .event import MeetingEvent, MeetingNote, MeetingActionItem
from .plan import Plan, PlanEvent
