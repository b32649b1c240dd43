"""Calendar feed token schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class IcsTokenResponse(BaseModel):
    token: Optional[str] = None
    is_active: Optional[bool] = None
    created_at: Optional[datetime] = None
