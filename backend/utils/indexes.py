from pymongo import ASCENDING, DESCENDING
from pymongo.errors import OperationFailure


def _normalize_key_pairs(keys):
    return [(k, v) for k, v in keys]


async def _create_index_safe(collection, keys, **kwargs):
    """
    Create index safely.
    If Mongo reports IndexOptionsConflict/IndexKeySpecsConflict for same key pattern,
    drop the conflicting index and recreate with desired options.
    """
    desired_key = _normalize_key_pairs(keys)
    desired_name = kwargs.get("name")
    try:
        await collection.create_index(keys, **kwargs)
        return
    except OperationFailure as e:
        if getattr(e, "code", None) not in {85, 86}:
            raise

        conflicting_names = []
        async for idx in collection.list_indexes():
            idx_key = _normalize_key_pairs(list(idx.get("key", {}).items()))
            if idx_key == desired_key:
                idx_name = idx.get("name")
                if idx_name and idx_name != desired_name:
                    conflicting_names.append(idx_name)

        for idx_name in conflicting_names:
            await collection.drop_index(idx_name)

        await collection.create_index(keys, **kwargs)


async def ensure_indexes(db):
    # Seller ledger: one row per (order, seller, type)
    await _create_index_safe(
        db.transactions,
        [("order_id", ASCENDING), ("user_id", ASCENDING), ("type", ASCENDING)],
        name="transactions_order_user_type_unique_idx",
        unique=True,
    )
    await _create_index_safe(
        db.transactions,
        [("user_id", ASCENDING), ("created_at", DESCENDING)],
        name="transactions_user_created_idx",
    )

    # Orders
    await _create_index_safe(
        db.orders,
        [("payment_id", ASCENDING)],
        name="orders_payment_id_idx",
        sparse=True,
    )
    await _create_index_safe(
        db.order_items,
        [("order_id", ASCENDING)],
        name="order_items_order_idx",
    )
    await _create_index_safe(
        db.order_items,
        [("product_id", ASCENDING)],
        name="order_items_product_idx",
    )
    await _create_index_safe(
        db.order_timeline,
        [("order_id", ASCENDING), ("created_at", ASCENDING)],
        name="order_timeline_order_created_idx",
    )

    # Products
    await _create_index_safe(
        db.products,
        [("seller_id", ASCENDING)],
        name="products_seller_idx",
    )
    await _create_index_safe(
        db.products,
        [("discount_start_date", ASCENDING)],
        name="products_discount_start_idx",
        sparse=True,
    )

    # Users
    await _create_index_safe(
        db.users,
        [("cart.product_id", ASCENDING)],
        name="users_cart_product_idx",
    )

    # Audit
    await _create_index_safe(
        db.audit_logs,
        [("target_user_id", ASCENDING), ("created_at", DESCENDING)],
        name="audit_logs_target_created_idx",
    )
