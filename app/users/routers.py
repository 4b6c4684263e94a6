from fastapi import APIRouter, HTTPException, Depends, File, UploadFile, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session
from typing import List
from loguru import logger

from app.database import get_db
from app.security.passwords import hash_password
from app.uploads.storage import get_storage
from app.users.auth import authenticate_user, get_current_user, token_for_user
from app.users import crud as user_crud, schemas, service

auth_router = APIRouter()
router = APIRouter()


# ===========================
# Auth
# ===========================

@auth_router.post(
    "/signup",
    response_model=schemas.AuthResponse,
    status_code=status.HTTP_201_CREATED
)
def sign_up(user: schemas.SignupSchema, db: Session = Depends(get_db)):
    # Check duplicate email
    existing_user = user_crud.get_user_by_email(db, user.email)
    if existing_user:
        raise HTTPException(status_code=400, detail="User already exists")

    new_user = user_crud.create_user(
        db,
        email=user.email,
        hashed_password=hash_password(user.password),
        name=user.name,
    )
    logger.info(f"User registered: {new_user.email}")

    return {"token": token_for_user(new_user), "user": new_user}


@auth_router.post("/login", response_model=schemas.AuthResponse)
def login(credentials: schemas.LoginSchema, db: Session = Depends(get_db)):
    user = authenticate_user(db, credentials.email, credentials.password)
    if not user:
        logger.warning(f"Authentication denied for email: {credentials.email}")
        raise HTTPException(status_code=400, detail="Invalid credentials")

    logger.info(f"User authenticated: {user.email}")
    return {"token": token_for_user(user), "user": user}


@auth_router.post("/token")
def login_for_access_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
):
    user = authenticate_user(db, form_data.username.strip().lower(), form_data.password)
    if not user:
        logger.warning(f"Authentication denied for email: {form_data.username}")
        raise HTTPException(status_code=401, detail="Invalid credentials")

    return {"access_token": token_for_user(user), "token_type": "bearer"}


# ===========================
# Users
# ===========================

@router.get("/me", response_model=schemas.UserDisplaySchema)
def get_current_user_info(
    current_user: schemas.UserDisplaySchema = Depends(get_current_user),
):
    return current_user


@router.get("/dashboard", response_model=schemas.UserDashboard)
def get_user_dashboard(
    db: Session = Depends(get_db),
    current_user: schemas.UserDisplaySchema = Depends(get_current_user),
):
    return service.get_user_dashboard(db, current_user.id)


@router.get("/", response_model=List[schemas.UserOut])
def list_all_users(
    db: Session = Depends(get_db),
    current_user: schemas.UserDisplaySchema = Depends(get_current_user),
):
    return user_crud.get_all_users(db)


@router.post("/upload-profile", response_model=schemas.ProfilePhotoResponse)
def upload_profile_picture(
    image: UploadFile = File(...),
    db: Session = Depends(get_db),
    storage=Depends(get_storage),
    current_user: schemas.UserDisplaySchema = Depends(get_current_user),
):
    return service.upload_profile_photo(db, storage, current_user.id, image)


@router.put("/profile-image", response_model=schemas.ProfilePhotoResponse)
def update_profile_image(
    image: UploadFile = File(...),
    db: Session = Depends(get_db),
    storage=Depends(get_storage),
    current_user: schemas.UserDisplaySchema = Depends(get_current_user),
):
    return service.replace_profile_photo(db, storage, current_user.id, image)
