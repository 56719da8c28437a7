from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator

from fantasy_engine.core.clock import ensure_utc

# Datetime siempre en UTC con zona horaria, incluso al volver de MongoDB
UTCDateTime = Annotated[datetime, AfterValidator(ensure_utc)]
