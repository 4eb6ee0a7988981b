from datetime import date, datetime


# Single source of "now": write timestamps, the overdue SQL predicate and
# Todo.is_overdue() all read it.
def now() -> datetime:
    return datetime.now()


def today() -> date:
    return now().date()
