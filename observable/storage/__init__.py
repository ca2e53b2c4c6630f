from observable.storage.changeset import Changeset
from observable.storage.engine import SqlAlchemyStorage, as_changeset

__all__ = ["Changeset", "SqlAlchemyStorage", "as_changeset"]
