# SIU — Database Models
# Import all models here for SQLAlchemy discovery

from app.models.owner import Owner            # noqa
from app.models.vehicle import Vehicle        # noqa
from app.models.payment import Payment        # noqa
from app.models.parameter import Parameter    # noqa
