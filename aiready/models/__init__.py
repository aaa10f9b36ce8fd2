# aiready/models/__init__.py
from aiready.db.base import Base  # noqa: F401

from . import user             # noqa: F401
from . import ai_system        # noqa: F401
from . import risk_assessment  # noqa: F401
from . import activity         # noqa: F401
from . import deadline         # noqa: F401
from . import alert            # noqa: F401
from . import document         # noqa: F401
from . import training         # noqa: F401
from . import feedback         # noqa: F401
from . import expert_review    # noqa: F401
from . import risk_management  # noqa: F401
