from .student import *
from .staff import *
from .activity import *
