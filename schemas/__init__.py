from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .pagination import *
from .categories import *
from .products import *
from .uploads import *
