"""Demonstration of in-memory transactions on a supermarket inventory."""

from rewindable.block_runner import TransactionBlock, run_block
from rewindable.config import TransactionConfig
from rewindable.group import TransactionGroup
from rewindable.models.transaction import BlockOutcome
from rewindable.transactional import Transactional


class StoreInventory(Transactional):
    """Stock levels of one store, checkpointed as a whole."""

    transaction_config = TransactionConfig(sink=print)

    def __init__(self, store_id: str):
        self.store_id = store_id
        self.products = {}

    def add_product(self, sku: str, name: str, quantity: int, min_stock: int):
        self.products[sku] = {
            "product_name": name,
            "quantity": quantity,
            "reserved": 0,
            "min_stock": min_stock,
        }

    def update_stock_level(self, sku: str, quantity_change: int) -> None:
        item = self.products.get(sku)
        if item is None:
            raise ValueError(f"Product {sku} not found in inventory")

        new_quantity = item["quantity"] + quantity_change
        if new_quantity < 0:
            raise ValueError(
                f"Insufficient stock for {sku}. Available: {item['quantity']}, "
                f"Requested: {abs(quantity_change)}"
            )
        item["quantity"] = new_quantity

    def reserve(self, sku: str, quantity: int) -> None:
        self.update_stock_level(sku, -quantity)
        self.products[sku]["reserved"] += quantity

    def print_status(self) -> None:
        print(f"\n=== {self.store_id} STATUS ===")
        for sku, item in self.products.items():
            print(
                f"{sku}: {item['quantity']} on hand, {item['reserved']} reserved"
            )
        print("====================\n")


def main():
    """Walk through commit, abort, rewind, block and group transactions."""
    store = StoreInventory("WESTSIDE-001")

    print("=== REGIONAL SUPERMARKET INVENTORY SYSTEM ===\n")

    print("1. Setting up initial store inventory...")
    store.start_transaction("setup")
    store.add_product("MILK-2PCT-1GAL", "2% Milk - 1 Gallon", 48, 12)
    store.add_product("BREAD-WHITE-LOAF", "White Bread Loaf", 36, 8)
    store.add_product("EGGS-LARGE-DOZEN", "Large Eggs - Dozen", 24, 6)
    store.commit_transaction("setup")
    print("✓ Initial inventory loaded successfully")
    store.print_status()

    print("2. Processing customer purchase that runs out of eggs...")
    with TransactionBlock(store):
        try:
            store.update_stock_level("MILK-2PCT-1GAL", -2)
            store.update_stock_level("EGGS-LARGE-DOZEN", -30)
        except ValueError as e:
            print(f"✗ Purchase failed: {e}")
            store.abort_transaction()
    print("✓ Transaction aborted - inventory unchanged")
    store.print_status()

    print("3. Reserving an online order, then rewinding a mistaken line...")
    store.start_transaction("online_order")
    store.reserve("MILK-2PCT-1GAL", 3)
    store.start_transaction("extra_line")
    store.reserve("BREAD-WHITE-LOAF", 20)
    store.rewind_transaction("online_order")
    store.reserve("MILK-2PCT-1GAL", 3)
    store.reserve("BREAD-WHITE-LOAF", 2)
    store.commit_transaction("online_order")
    print("✓ Online order reserved successfully")
    store.print_status()

    print("4. Transferring stock between stores...")
    eastside = StoreInventory("EASTSIDE-002")
    eastside.add_product("MILK-2PCT-1GAL", "2% Milk - 1 Gallon", 4, 12)

    def transfer(source, destination):
        source.update_stock_level("MILK-2PCT-1GAL", -10)
        destination.update_stock_level("MILK-2PCT-1GAL", 10)
        return BlockOutcome.COMMIT

    run_block(store, eastside, body=transfer, name="transfer")
    print("✓ Transfer committed on both stores")

    print("5. Daily audit across stores, abandoned...")
    with TransactionGroup(store, eastside) as group:
        group.start_transaction("audit")
        store.update_stock_level("MILK-2PCT-1GAL", -1)
        eastside.update_stock_level("MILK-2PCT-1GAL", -1)
        group.abort_transaction("audit")
    print("✓ Audit discarded on every store")

    print("\n=== FINAL SYSTEM STATUS ===")
    store.print_status()
    eastside.print_status()


if __name__ == "__main__":
    main()
