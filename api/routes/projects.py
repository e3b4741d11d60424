"""Project endpoints and the per-project realtime feeds."""

from fastapi import APIRouter, Depends

from api.auth import current_user
from api.store import DemoStore, get_store

router = APIRouter(prefix="/projects", tags=["projects"])


@router.get("", summary="Projects owned by the current user")
def list_projects(user: dict = Depends(current_user),
                  store: DemoStore = Depends(get_store)) -> list[dict]:
    return store.projects_for(user["id"])


@router.get("/{project_id}", summary="Project detail")
def get_project(project_id: int, user: dict = Depends(current_user),
                store: DemoStore = Depends(get_store)) -> dict:
    return store.project_for(user["id"], project_id)


@router.get("/{project_id}/activities", summary="Recent changes, newest first")
def list_activities(project_id: int, user: dict = Depends(current_user),
                    store: DemoStore = Depends(get_store)) -> list[dict]:
    store.project_for(user["id"], project_id)
    return store.activities_for(project_id)


@router.get("/{project_id}/collaborators", summary="People with access to the project")
def list_collaborators(project_id: int, user: dict = Depends(current_user),
                       store: DemoStore = Depends(get_store)) -> list[dict]:
    store.project_for(user["id"], project_id)
    return [{"id": user["id"], "username": user["username"], "role": "owner"}]


@router.get("/{project_id}/inspiration", summary="Saved inspiration items")
def list_inspiration(project_id: int, user: dict = Depends(current_user),
                     store: DemoStore = Depends(get_store)) -> list[dict]:
    store.project_for(user["id"], project_id)
    return []
