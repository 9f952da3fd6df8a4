# file: dummy_cloudlink_api.py
"""
Stub CloudLink server for local development.

Serves every endpoint the client talks to from in-memory state, behind
HTTP basic auth. Like the real server, getRegIds double-encodes its payload.

    python dummy_cloudlink_api.py
"""

import json
import random
from datetime import datetime, timedelta, timezone

from faker import Faker
from flask import Flask, Response, jsonify, request

import config

fake = Faker("en_US")
Faker.seed(42)  # Reproducible data
random.seed(42)

ORDER_STATUSES = [
    "pending",
    "accepted",
    "in progress",
    "done",
    "delivered",
    "rejected",
    "failure",
    "aborted",
]

DEFAULT_RECIPES = [
    {"recipeId": 10001, "name": "Cocktail", "description": "Mixed to order",
     "userParameters": [{"name": "Volume", "default": 200, "min": 100, "max": 300}]},
    {"recipeId": 10002, "name": "Cookie", "description": "Personalised cookie",
     "userParameters": [{"name": "Topping", "default": 1, "min": 0, "max": 3}]},
    {"recipeId": 10003, "name": "Yoghurt", "description": "Fruit yoghurt",
     "userParameters": [{"name": "Fruit", "default": 50, "min": 0, "max": 100}]},
]


def _now() -> datetime:
    return datetime.now(timezone.utc).replace(microsecond=0)


def _parse_timestamp(value: str | None) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        moment = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


def generate_order(order_id: int, placed: datetime) -> dict:
    """Generate a single order placed at the given time."""
    recipe = random.choice(DEFAULT_RECIPES)
    return {
        "orderId": order_id,
        "recipeId": recipe["recipeId"],
        "parameters": [p["default"] for p in recipe["userParameters"]],
        "status": random.choice(ORDER_STATUSES),
        "customerName": fake.name(),
        "customerEmail": fake.email(),
        "marketPlaceId": "www",
        "barcode": None,
        "date": placed.isoformat(),
        "lastUpdate": placed.isoformat(),
    }


def generate_orders(count: int = 20) -> list[dict]:
    """Generate orders starting from ID 1001, one every ten minutes up to now."""
    start = _now() - timedelta(minutes=10 * count)
    return [
        generate_order(1001 + i, start + timedelta(minutes=10 * i))
        for i in range(count)
    ]


def create_app(
    username: str = config.CLOUDLINK_USER,
    password: str = config.CLOUDLINK_PASSWORD,
    order_count: int = 20,
) -> Flask:
    """Build a stub server with its own in-memory state."""
    app = Flask(__name__)

    state = {
        "orders": generate_orders(order_count),
        "recipes": [],
        "feedback": [],
        "reg_ids": [],
        "machine_status": "working",
    }

    def find_order(order_id) -> dict | None:
        for order in state["orders"]:
            if str(order["orderId"]) == str(order_id):
                return order
        return None

    def touch(order: dict) -> None:
        order["lastUpdate"] = _now().isoformat()

    def load_form_json(field: str):
        try:
            return json.loads(request.form.get(field, ""))
        except json.JSONDecodeError:
            return None

    @app.before_request
    def check_auth():
        auth = request.authorization
        if auth is None or auth.username != username or auth.password != password:
            # plain text like the real server, not JSON
            return Response(
                "Unauthorized",
                401,
                {"WWW-Authenticate": 'Basic realm="CloudLink"'},
            )
        return None

    @app.route("/helloWorld", methods=["GET"])
    def hello_world():
        return Response("Hello World!", mimetype="text/plain")

    @app.route("/reportMachineStatus", methods=["POST"])
    def report_machine_status():
        state["machine_status"] = request.form.get("status", "")
        return jsonify({"status": "ok", "machineStatus": state["machine_status"]})

    @app.route("/getOrdersByStatus", methods=["POST"])
    def get_orders_by_status():
        status = request.form.get("status")
        return jsonify([o for o in state["orders"] if o["status"] == status])

    @app.route("/getOrdersFiltered", methods=["POST"])
    def get_orders_filtered():
        flt = load_form_json("filter")
        if not isinstance(flt, dict):
            flt = {}
        statuses = flt.get("status")
        if statuses is None:
            return jsonify(state["orders"])
        if not isinstance(statuses, list):
            statuses = [statuses]
        return jsonify([o for o in state["orders"] if o["status"] in statuses])

    @app.route("/placeOrder", methods=["POST"])
    def place_order():
        order = load_form_json("order")
        if not isinstance(order, dict):
            return jsonify({"status": "err", "error": "order is not valid JSON"}), 400
        order_id = max((o["orderId"] for o in state["orders"]), default=1000) + 1
        now = _now().isoformat()
        placed = {
            "barcode": None,
            **order,
            "orderId": order_id,
            "status": "pending",
            "date": now,
            "lastUpdate": now,
        }
        state["orders"].append(placed)
        return jsonify({"status": "ok", "orderId": order_id, "orderStatus": "pending"})

    @app.route("/updateOrderStatus", methods=["POST"])
    def update_order_status():
        order = find_order(request.form.get("id"))
        if order is None:
            return jsonify({"status": "err", "error": "order not found"}), 404
        order["status"] = request.form.get("status", order["status"])
        touch(order)
        return jsonify({"status": "ok", "orderId": order["orderId"]})

    @app.route("/updateOrder", methods=["POST"])
    def update_order():
        changes = load_form_json("order")
        if not isinstance(changes, dict) or "orderId" not in changes:
            return jsonify({"status": "err", "error": "orderId missing"}), 400
        order = find_order(changes["orderId"])
        if order is None:
            return jsonify({"status": "err", "error": "order not found"}), 404
        order.update({k: v for k, v in changes.items() if k != "orderId"})
        touch(order)
        return jsonify({"status": "ok", "orderId": order["orderId"]})

    @app.route("/setBarcode", methods=["POST"])
    def set_barcode():
        order = find_order(request.form.get("id"))
        if order is None:
            return jsonify({"status": "err", "error": "order not found"}), 404
        order["barcode"] = request.form.get("barcode")
        touch(order)
        return jsonify({"status": "ok", "orderId": order["orderId"]})

    def orders_after(field: str):
        since = _parse_timestamp(request.form.get("timestamp"))
        if since is None:
            return jsonify({"status": "err", "error": "invalid timestamp"}), 400
        matching = []
        for order in state["orders"]:
            moment = _parse_timestamp(order.get(field))
            # dates overwritten through updateOrder may not be ISO-8601
            if moment is not None and moment >= since:
                matching.append(order)
        return jsonify(matching)

    @app.route("/getOrdersSince", methods=["POST"])
    def get_orders_since():
        return orders_after("date")

    @app.route("/getOrdersUpdatedSince", methods=["POST"])
    def get_orders_updated_since():
        return orders_after("lastUpdate")

    @app.route("/getRecipes", methods=["GET"])
    def get_recipes():
        return jsonify(state["recipes"])

    @app.route("/loadDefaultRecipes", methods=["GET"])
    def load_default_recipes():
        state["recipes"] = [dict(r) for r in DEFAULT_RECIPES]
        return jsonify({"status": "ok", "recipes": state["recipes"]})

    @app.route("/giveFeedback", methods=["POST"])
    def give_feedback():
        feedback = load_form_json("feedback")
        if not isinstance(feedback, dict):
            return jsonify({"status": "err", "error": "feedback is not valid JSON"}), 400
        state["feedback"].append(feedback)
        return jsonify({"status": "ok", "notified": not feedback.get("like", True)})

    @app.route("/getRegIds", methods=["GET"])
    def get_reg_ids():
        # the real server encodes the id list twice
        return jsonify(json.dumps(state["reg_ids"]))

    @app.route("/register", methods=["POST"])
    def register():
        reg_id = request.form.get("regId")
        if not reg_id:
            return jsonify({"status": "err", "error": "regId missing"}), 400
        if reg_id not in state["reg_ids"]:
            state["reg_ids"].append(reg_id)
        return jsonify({"status": "ok", "regId": reg_id})

    return app


app = create_app()


if __name__ == "__main__":
    print(f"Serving stub CloudLink on port {config.DUMMY_API_PORT}")
    app.run(host="0.0.0.0", port=config.DUMMY_API_PORT, debug=True)
