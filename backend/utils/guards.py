from fastapi import HTTPException
from bson import ObjectId

# -------------------------------
# ObjectId Guard
# -------------------------------

def parse_object_id(value: str, name: str = "id") -> ObjectId:
    if not ObjectId.is_valid(value or ""):
        raise HTTPException(status_code=400, detail=f"Invalid {name}")
    return ObjectId(value)
