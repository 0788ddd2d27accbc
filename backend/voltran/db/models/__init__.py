from .inward_transaction import InwardTransaction  # noqa: F401
from .material import Material  # noqa: F401
from .outward_transaction import OutwardTransaction  # noqa: F401
from .user import User  # noqa: F401

from . import inward_transaction  # noqa: F401
from . import material  # noqa: F401
from . import outward_transaction  # noqa: F401
from . import user  # noqa: F401
