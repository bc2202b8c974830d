from datetime import datetime
from bson import ObjectId


def _serialize_value(value):
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return serialize_doc(value)
    if isinstance(value, list):
        return [_serialize_value(v) for v in value]
    return value


def serialize_doc(doc: dict) -> dict:
    if not doc:
        return doc

    doc = dict(doc)
    if "_id" in doc:
        doc["id"] = doc.pop("_id")
    for k, v in doc.items():
        doc[k] = _serialize_value(v)
    return doc


def serialize_docs(docs):
    return [serialize_doc(d) for d in docs]
