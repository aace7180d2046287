import sys
import os
import traceback

# Add project root to path
sys.path.append(os.getcwd())

print("Starting schema verification...")

try:
    from clasificados import schemas
    print("Schemas package imported successfully.")

    # Try instantiating a few to check for runtime errors in definitions
    from pydantic import ValidationError

    try:
        listing = schemas.ListingCreate(
            category="rent", scope="NEIGHBORHOOD", title="Room in Vedado",
            description="Quiet room", price="150", currency="USD", rent_period="monthly",
        )
        print(f"ListingCreate schema valid: {listing.column_values()}")
    except ValidationError as e:
        print(f"ListingCreate validation failed: {e}")

    try:
        schemas.ListingCreate(category="cars", scope="CITY", title="x", description="y")
        print("FAILURE: unknown category accepted")
        sys.exit(1)
    except ValidationError:
        print("ListingCreate rejects unknown category.")

    update = schemas.ListingUpdate(neighborhood="", price="")
    assert update.column_values() == {}, "empty strings should be dropped"
    print("ListingUpdate drops empty form values.")

    print("SUCCESS: Schemas verified.")

except Exception:
    print("FAILURE: Schema verification failed.")
    traceback.print_exc()
    sys.exit(1)
