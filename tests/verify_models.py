import sys
import os
import traceback

# Add project root to path
sys.path.append(os.getcwd())

print("Starting verification...")

try:
    from clasificados.core import config
    print("Config imported.")

    from sqlalchemy.orm import configure_mappers

    # Import Base last (and all models)
    from clasificados.db.base import Base
    print("Base imported. Models loaded.")

    print("Checking ORM mappings...")
    configure_mappers()
    print("SUCCESS: ORM mappings are valid.")

    # Compile the DDL against PostgreSQL so CHECK constraints get rendered too
    from sqlalchemy.dialects import postgresql
    from sqlalchemy.schema import CreateTable

    dialect = postgresql.dialect()
    for table in Base.metadata.sorted_tables:
        ddl = str(CreateTable(table).compile(dialect=dialect))
        print(f"Table {table.name}: {len(table.columns)} columns, {len(table.constraints)} constraints")
        if table.name == "listings":
            assert "ck_listings_status" in ddl, "status CHECK constraint missing"
    print("SUCCESS: DDL compiles for PostgreSQL.")

except Exception:
    print("FAILURE: Model verification failed.")
    traceback.print_exc()
    sys.exit(1)
