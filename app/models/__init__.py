from app.db.base_class import Base
from app.models.domain import Domain, DomainHealthLog
