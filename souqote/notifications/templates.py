import re

NOTIFICATION_TYPES = (
    "new_quote_received",       # Buyer: new quote on their RFQ
    "rfq_deadline_approaching", # Buyer: RFQ deadline soon
    "rfq_expired",              # Buyer: RFQ deadline passed
    "new_rfq_available",        # Vendor: new RFQ in their category
    "quote_status_changed",     # Vendor: quote accepted/rejected
    "rfq_awarded",              # Vendor: won the RFQ
    "quote_deadline_reminder",  # Vendor: quote expiring soon
    "new_message",              # Both
    "system_alert",
)

PRIORITIES = ("low", "medium", "high", "urgent")

NOTIFICATION_TEMPLATES = {
    "new_quote_received": {
        "title": "New Quote Received",
        "message": "You have received a new quote for your RFQ: {rfq_title}",
        "priority": "high",
        "email": True,
        "in_app": True,
    },
    "rfq_deadline_approaching": {
        "title": "RFQ Deadline Approaching",
        "message": 'Your RFQ "{rfq_title}" deadline is approaching in {hours} hours',
        "priority": "medium",
        "email": True,
        "in_app": False,
    },
    "rfq_expired": {
        "title": "RFQ Expired",
        "message": 'Your RFQ "{rfq_title}" has expired',
        "priority": "medium",
        "email": True,
        "in_app": False,
    },
    "new_rfq_available": {
        "title": "New RFQ Available",
        "message": 'A new RFQ "{rfq_title}" is available in your category',
        "priority": "high",
        "email": True,
        "in_app": True,
    },
    "quote_status_changed": {
        "title": "Quote Status Updated",
        "message": 'Your quote for "{rfq_title}" has been {status}',
        "priority": "high",
        "email": True,
        "in_app": True,
    },
    "rfq_awarded": {
        "title": "Quote Accepted",
        "message": 'Your quote for "{rfq_title}" has been accepted!',
        "priority": "urgent",
        "email": True,
        "in_app": True,
    },
    "quote_deadline_reminder": {
        "title": "Quote Expiring Soon",
        "message": 'Your quote for "{rfq_title}" expires in {hours} hours',
        "priority": "medium",
        "email": True,
        "in_app": False,
    },
    "new_message": {
        "title": "New Message",
        "message": "You have a new message from {sender_name}",
        "priority": "medium",
        "email": False,
        "in_app": True,
    },
    "system_alert": {
        "title": "System Alert",
        "message": "{message}",
        "priority": "low",
        "email": True,
        "in_app": True,
    },
}

_PLACEHOLDER = re.compile(r"\{([^}]+)\}")


def replace_placeholders(message: str, data: dict | None) -> str:
    """Fill `{key}` slots from data; unknown or empty keys stay as written."""
    if not data:
        return message

    def _sub(match):
        value = data.get(match.group(1))
        if value is None or value == "":
            return match.group(0)
        return str(value)

    return _PLACEHOLDER.sub(_sub, message)
