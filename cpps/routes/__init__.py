"""Routes package.

Defines the `main` blueprint and imports the route modules so their
@bp.route decorators are registered.
"""

from flask import Blueprint

bp = Blueprint("main", __name__)

# These imports must come AFTER `bp` is defined.
from . import index  # noqa: F401,E402
from . import decisions  # noqa: F401,E402
from . import case_history  # noqa: F401,E402
from . import workers  # noqa: F401,E402
from . import search  # noqa: F401,E402
from . import attachments  # noqa: F401,E402
from . import storage  # noqa: F401,E402
from . import queues  # noqa: F401,E402
