"""Import every model so SQLAlchemy can resolve string relationships."""
from app.users.models import User, Role  # noqa: F401
from app.zones.models import Zone, UserZone  # noqa: F401
from app.categories.models import Category  # noqa: F401
from app.expenses.models import Expense  # noqa: F401
