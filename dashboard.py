from pymongo.database import Database

from orders import populate_order

RECENT_ORDERS = 5


def dashboard_summary(db: Database) -> dict:
    # Revenue is a full scan over completed orders on every call.
    completed = db["order"].find({"paymentStatus": "Completed"}, {"totalAmount": 1})
    total_revenue = sum(o.get("totalAmount", 0) for o in completed)

    recent = db["order"].find().sort([("createdAt", -1), ("_id", -1)]).limit(RECENT_ORDERS)
    return {
        "stats": {
            "totalProducts": db["product"].count_documents({}),
            "totalOrders": db["order"].count_documents({}),
            "totalRevenue": total_revenue,
            "pendingOrders": db["order"].count_documents({"orderStatus": "Pending"}),
        },
        "recentOrders": [populate_order(db, o, with_user=True) for o in recent],
    }
