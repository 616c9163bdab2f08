"""Query results."""


class Result:
    """Rows of a query as dictionaries."""

    def __init__(self, cursor):
        self.columns = [c[0] for c in cursor.description or []]
        self.rows = [dict(zip(self.columns, row)) for row in cursor.fetchall()]

    def first(self):
        return self.rows[0] if self.rows else None

    def __iter__(self):
        return iter(self.rows)

    def __len__(self):
        return len(self.rows)
