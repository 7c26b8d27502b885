"""统一错误响应 -- {"error": {"code", "message"}}"""

from starlette.responses import JSONResponse


def error_response(status_code: int, code: str, message: str, **extra) -> JSONResponse:
    body: dict = {"code": code, "message": message}
    body.update(extra)
    return JSONResponse(status_code=status_code, content={"error": body})


def task_not_found(task_id: str) -> JSONResponse:
    return error_response(404, "TASK_NOT_FOUND", f"Task with id {task_id} does not exist")


def not_persisted() -> JSONResponse:
    return error_response(
        503,
        "NOT_PERSISTED",
        "The change could not be saved; the board was reloaded from storage",
    )
