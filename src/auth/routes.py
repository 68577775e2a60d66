import logging

from fastapi import APIRouter, Depends, HTTPException

from src.database.connection import get_db
from src.models.schemas import LoginRequest, RegisterRequest
from src.utils.security import hash_password, verify_password, create_access_token

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/login")
def login(payload: LoginRequest, db=Depends(get_db)):
    user = db.users.find_one({"email": payload.email.lower()})
    if not user or not verify_password(payload.password, user["password"]):
        raise HTTPException(status_code=400, detail="Incorrect email or password")
    token = create_access_token({"sub": str(user["_id"])})
    return {"access_token": token, "token_type": "bearer"}


@router.post("/register", status_code=201)
def register(payload: RegisterRequest, db=Depends(get_db)):
    email = payload.email.lower()
    if db.users.find_one({"email": email}):
        raise HTTPException(status_code=400, detail="Email already registered")
    res = db.users.insert_one({
        "name": payload.name,
        "email": email,
        "password": hash_password(payload.password),
    })
    logger.info("Registered user %s", res.inserted_id)
    return {"message": "User registered successfully", "id": str(res.inserted_id)}
