from typing import List

from fastapi import APIRouter, Depends

from ...database.models import NewsItem, StaffMember, Subject
from ...database.repository import Repository
from ..dependencies import get_repository

router = APIRouter()

# News, staff and subjects are readable without a session.


@router.get("/news", response_model=List[NewsItem], summary="Get All News, Newest First")
def get_news(repo: Repository = Depends(get_repository)):
    return repo.get_news()


@router.get("/staff", response_model=List[StaffMember], summary="Get the Staff Directory")
def get_staff(repo: Repository = Depends(get_repository)):
    return repo.get_staff_directory()


@router.get("/subjects", response_model=List[Subject], summary="Get All Subjects")
def get_subjects(repo: Repository = Depends(get_repository)):
    return repo.get_subjects()
