from fastapi import APIRouter, Depends, Form, Request, status
from fastapi.responses import RedirectResponse

from inventory_portal.dependencies import PortalContext, get_portal
from inventory_portal.exceptions import AuthenticationError, ValidationError
from inventory_portal.services.validation import require
from inventory_portal.templating import render

router = APIRouter()

HOME_PATH = "/dashboard"


@router.get("/login")
async def get_login(request: Request, portal: PortalContext = Depends(get_portal)):
    if portal.session is not None:
        return RedirectResponse(HOME_PATH, status_code=status.HTTP_302_FOUND)
    return render(request, "login.html")


@router.post("/login")
async def post_login(
    request: Request,
    username: str = Form(""),
    password: str = Form(""),
    portal: PortalContext = Depends(get_portal),
):
    try:
        require(username, "username", "Username is required")
        require(password, "password", "Password is required")
        await portal.session_store.login(username.strip(), password)
    except (ValidationError, AuthenticationError) as e:
        return render(
            request,
            "login.html",
            {"error": e.message, "username": username},
            status_code=e.status_code,
        )
    return RedirectResponse(HOME_PATH, status_code=status.HTTP_303_SEE_OTHER)


@router.get("/signup")
async def get_signup(request: Request):
    return render(request, "signup.html")


@router.post("/signup")
async def post_signup(
    request: Request,
    username: str = Form(""),
    email: str = Form(""),
    password: str = Form(""),
    portal: PortalContext = Depends(get_portal),
):
    try:
        require(username, "username", "Username is required")
        require(email, "email", "Email is required")
        require(password, "password", "Password is required")
        await portal.session_store.signup(username.strip(), email.strip(), password)
    except (ValidationError, AuthenticationError) as e:
        return render(
            request,
            "signup.html",
            {"error": e.message, "username": username, "email": email},
            status_code=e.status_code,
        )
    return RedirectResponse(HOME_PATH, status_code=status.HTTP_303_SEE_OTHER)


@router.api_route("/logout", methods=["GET", "POST"])
async def logout(portal: PortalContext = Depends(get_portal)):
    portal.session_store.logout()
    return RedirectResponse(portal.settings.login_path, status_code=status.HTTP_303_SEE_OTHER)
