from sqlalchemy import DateTime

# Timestamps are stored as naive UTC; see app.core.clock.utcnow
NaiveDateTime = DateTime(timezone=False)
