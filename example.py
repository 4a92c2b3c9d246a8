"""Example usage of the virtual_tables library."""

import os

import apsw

from virtual_tables import (
    Affinity,
    ColumnSchema,
    ConstraintOperator,
    TablePlugin,
    attach_virtual_tables,
    register_table,
)


# Define a table over environment variables
@register_table
class EnvironmentTable(TablePlugin):
    name = "environment"
    columns = ColumnSchema([
        ("key", Affinity.TEXT),
        ("value", Affinity.TEXT),
        ("length", Affinity.INTEGER),
    ])

    def generate(self, context):
        # Use pushed-down `key = ...` predicates to skip unrelated variables
        wanted = context["key"].get_all(ConstraintOperator.EQ)
        for key, value in sorted(os.environ.items()):
            if wanted and key not in wanted:
                continue
            yield {"key": key, "value": value, "length": str(len(value))}


# Attach every registered table to an in-memory database
connection = apsw.Connection(":memory:")
report = attach_virtual_tables(connection)
print(f"Attached: {', '.join(report.attached)}")

queries = [
    "SELECT key, value FROM environment WHERE key = 'HOME'",
    "SELECT count(*) FROM environment",
    "SELECT key, length FROM environment ORDER BY length DESC LIMIT 3",
]

for sql in queries:
    print(f"\n{sql}")
    for row in connection.cursor().execute(sql):
        print(f"  {row}")

connection.close()

print("\n" + "=" * 60)
print("Tables can also be declared in spec files and queried from the shell:")
print("  vtables -t processes.table")
print("\nExample queries:")
print("  SELECT * FROM processes")
print("  SELECT name FROM processes WHERE pid = 1")
