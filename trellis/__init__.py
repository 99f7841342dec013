__title__ = 'trellis'
__author__ = 'Eiko Reishin (影皇嶺臣)'
__license__ = 'MIT'
# Placeholder, modified by dynamic-versioning.
__version__ = "0.0.0"

# Submodule objects, kept apart from the names the star imports rebind
# (e.g. trellis.capabilities.capabilities shadows its module).
from . import capabilities as _capabilities, context as _context, faults as _faults
from . import flags as _flags, program as _program, tree as _tree

from .capabilities import *
from .context import *
from .faults import *
from .flags import *
from .program import *
from .tree import *

VersionInfo = __import__("collections").namedtuple("VersionInfo", (
    "major",
    "minor",
    "micro",
    "releaselevel",
    "serial",
    "metadata"
))

# Placeholder, modified by dynamic-versioning.
version_info = VersionInfo(0, 0, 0, "final", 0, "")

__all__ = (
    "__title__",
    "__author__",
    "__license__",
    "__version__",
    "version_info"
)

# Load the exposed API of the capabilities
__all__ += _capabilities.__all__
# Load the exposed API of the context
__all__ += _context.__all__
# Load the exposed API of the faults
__all__ += _faults.__all__
# Load the exposed API of the flags
__all__ += _flags.__all__
# Load the exposed API of the program
__all__ += _program.__all__
# Load the exposed API of the tree
__all__ += _tree.__all__
