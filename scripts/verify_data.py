"""Verify SEND data was loaded and show what the route/design lookups see."""

from send_select.db import execute

# Count rows in each table
print("Row counts:")
for table in ["TS", "DM", "EX", "POOLDEF"]:
    rows = execute(f"SELECT COUNT(*) FROM {table}", commit=False)
    print(f"  {table}: {rows[0][0]:,}")

print("\n--- Studies per TS ROUTE value ---")
rows = execute(
    """
    SELECT TSVAL, COUNT(DISTINCT STUDYID)
    FROM TS
    WHERE TSPARMCD = 'ROUTE'
    GROUP BY TSVAL
    ORDER BY 2 DESC
    """,
    commit=False,
)
for value, count in rows:
    print(f"  {value or '<empty>'}: {count:,}")

print("\n--- Animals per EXROUTE value ---")
rows = execute(
    """
    SELECT EXROUTE, COUNT(DISTINCT USUBJID)
    FROM EX
    GROUP BY EXROUTE
    ORDER BY 2 DESC
    """,
    commit=False,
)
for value, count in rows:
    print(f"  {value or '<empty>'}: {count:,}")

print("\n--- Studies with more than one SDESIGN ---")
rows = execute(
    """
    SELECT STUDYID, COUNT(DISTINCT TSVAL)
    FROM TS
    WHERE TSPARMCD = 'SDESIGN'
    GROUP BY STUDYID
    HAVING COUNT(DISTINCT TSVAL) > 1
    """,
    commit=False,
)
if rows:
    for study, count in rows:
        print(f"  {study}: {count}")
else:
    print("  None")
