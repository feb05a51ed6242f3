from .roster import *
from .activity import *
from .assignment import *
from .initialize import *
