"""Project pages."""

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from sqlalchemy.orm import Session
from starlette.responses import Response

from prase.database import get_db
from prase.dependencies import get_request_context, require_user, verify_csrf
from prase.errors import DuplicateRecordError, ValidationError
from prase.services.catalog import get_project_service
from prase.services.sessions import RequestContext
from prase.services.uploads import thumbnail_name
from prase.templating import redirect, render

router = APIRouter(
    prefix="/projects",
    tags=["Projects"],
    dependencies=[Depends(verify_csrf), Depends(require_user)],
)


@router.get("")
def list_projects(request: Request, db: Session = Depends(get_db)) -> Response:
    projects = get_project_service().list_projects(db)
    return render(request, "projects/list.html", {"title": "Projects", "projects": projects})


@router.get("/create")
def create_page(request: Request) -> Response:
    return render(request, "projects/create.html", {"title": "Create Project"})


@router.post("")
def create_project(
    uid: str = Form(""),
    name: str = Form(""),
    description: str = Form(""),
    materials: str = Form(""),
    tools: str = Form(""),
    steps: list[str] = Form([]),
    tips: str = Form(""),
    picture: UploadFile | None = File(None),
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> Response:
    """Create a project from the multipart form, picture included."""
    data = {
        "uid": uid,
        "name": name,
        "description": description,
        "materials": materials,
        "tools": tools,
        "steps": steps,
        "tips": tips,
    }
    try:
        project = get_project_service().create_project(db, data, picture)
    except ValidationError as exc:
        context.flash_errors(exc.violations)
        return redirect("/projects/create")
    except DuplicateRecordError as exc:
        context.flash("errors", exc.message)
        return redirect("/projects/create")

    context.flash("success", f"Project {project.uid} created.")
    return redirect(f"/projects/{project.id}")


@router.get("/update/{project_id}")
def update_page(request: Request, project_id: int, db: Session = Depends(get_db)) -> Response:
    project = get_project_service().get_project(db, project_id)
    return render(request, "projects/update.html", {"title": "Update Project", "project": project})


@router.get("/{project_id}")
def show_project(request: Request, project_id: int, db: Session = Depends(get_db)) -> Response:
    """Project detail with the cards that have events recorded against it."""
    service = get_project_service()
    project = service.get_project(db, project_id)
    cards = service.project_cards(db, project)
    return render(
        request,
        "projects/show.html",
        {
            "title": project.name,
            "project": project,
            "cards": cards,
            "thumbnail": thumbnail_name(project.picture) if project.picture else None,
        },
    )


@router.post("/delete/{project_id}")
def delete_project(
    project_id: int,
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> Response:
    get_project_service().delete_project(db, project_id)
    context.flash("info", "Project deleted.")
    return redirect("/projects")


@router.post("/{project_id}")
def update_project(
    project_id: int,
    name: str = Form(""),
    description: str = Form(""),
    materials: str = Form(""),
    tools: str = Form(""),
    steps: list[str] = Form([]),
    tips: str = Form(""),
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> Response:
    data = {
        "name": name,
        "description": description,
        "materials": materials,
        "tools": tools,
        "steps": steps,
        "tips": tips,
    }
    try:
        get_project_service().update_project(db, project_id, data)
    except ValidationError as exc:
        context.flash_errors(exc.violations)
        return redirect(f"/projects/update/{project_id}")

    context.flash("success", "Project updated.")
    return redirect(f"/projects/{project_id}")
