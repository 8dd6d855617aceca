"""Example usage of the typed_buckets library."""

from pathlib import Path

from typed_buckets import Record, RecordStore


class Dish(Record):
    columns = ("name", "extras")


def aka(value):
    return "aka " + value


# Declare virtual attributes packed into the "extras" column
Dish.declare_buckets(
    """
    bucket extras {
        best_served_with
        rating: integer
        vegetarian: boolean
        nickname: aka
    }
    """,
    transforms={"aka": aka},
)

# Create a data directory for storage
data_dir = Path("./example_data")

with RecordStore(data_dir) as store:
    # Values arrive as raw form input and are coerced on write
    dishes = [
        Dish(name="Salmon", best_served_with="Pan-fried asparagus", rating="9", vegetarian="0"),
        Dish(name="Risotto", best_served_with="Parmesan", rating="8", vegetarian="t"),
        Dish(name="Bucket stew", rating="abc", nickname="The Holder of the Bucket"),
    ]

    print("Saving dishes...")
    for dish in dishes:
        store.save(dish)
        print(f"  Saved: {dish}")

    print("\nAll dishes in database:")
    for dish in store.all(Dish):
        print(f"  [{dish.id}] {dish.name}: {dish.virtual_attributes()}")

    print(f"\nFiles created in {data_dir}:")
    for f in sorted(data_dir.iterdir()):
        print(f"  {f.name} ({f.stat().st_size} bytes)")
