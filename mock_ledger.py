# mock_ledger.py

from datetime import datetime, time
from typing import Callable, Dict, Optional, Set, Tuple
import uuid

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel


class LoginRequest(BaseModel):
    identifier: str
    password: str


class MarkQrAttendanceRequest(BaseModel):
    identifier: str
    teacher_id: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class StubUser(BaseModel):
    id: str
    password: str
    role: str


class StubClass(BaseModel):
    identifier: str
    teacher_id: str
    start: time
    end: time


DEFAULT_USERS = {
    "teacher1": StubUser(id="T001", password="password", role="teacher"),
    "teacher2": StubUser(id="T002", password="password", role="teacher"),
    "student1": StubUser(id="S001", password="password", role="student"),
}

DEFAULT_CLASSES = {
    "CLASS-MATH-101": StubClass(identifier="CLASS-MATH-101", teacher_id="T001", start=time(0, 0), end=time(23, 59)),
    "CLASS-PHY-201": StubClass(identifier="CLASS-PHY-201", teacher_id="T002", start=time(8, 0), end=time(9, 0)),
}


def create_app(
    users: Optional[Dict[str, StubUser]] = None,
    classes: Optional[Dict[str, StubClass]] = None,
    clock: Callable[[], datetime] = datetime.now
) -> FastAPI:
    """
    Builds an in-memory stand-in for the attendance ledger. It answers business
    rejections with HTTP 200 and an `error` field, the way the real ledger does.
    """
    users = dict(DEFAULT_USERS if users is None else users)
    classes = dict(DEFAULT_CLASSES if classes is None else classes)
    recorded: Set[Tuple[str, str]] = set()

    app = FastAPI(
        title="Attendance Ledger (Stub)",
        description="Implements login and QR attendance marking with in-memory data.",
        version="1.0.0-stub"
    )
    app.state.recorded = recorded

    @app.post("/api/auth/login")
    async def login(credentials: LoginRequest):
        user = users.get(credentials.identifier)
        if user is None or user.password != credentials.password:
            return JSONResponse(status_code=401, content={"error": "Invalid credentials"})
        return {"role": user.role, "token": uuid.uuid4().hex, "id": user.id}

    @app.post("/api/attendance/mark-qr-attendance")
    async def mark_qr_attendance(body: MarkQrAttendanceRequest):
        if body.latitude is None or body.longitude is None:
            return JSONResponse(status_code=400, content={"error": "Location is required."})

        lesson = classes.get(body.identifier)
        if lesson is None:
            return JSONResponse(status_code=404, content={"error": "Class not found."})
        if lesson.teacher_id != body.teacher_id:
            return {"error": "Teacher mismatch"}

        now = clock()
        if not (lesson.start <= now.time() <= lesson.end):
            return {
                "error": f"Attendance can only be marked between "
                         f"{lesson.start.strftime('%H:%M')} and {lesson.end.strftime('%H:%M')}"
            }

        key = (lesson.identifier, now.date().isoformat())
        if key in recorded:
            return {"error": "Attendance already recorded for this class."}
        recorded.add(key)
        return {}

    @app.get("/health")
    def health_check():
        """Health check endpoint"""
        return {"status": "healthy"}

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    # python mock_ledger.py  ->  LEDGER_BASE_URL=http://localhost:5000/api
    uvicorn.run(app, host="0.0.0.0", port=5000)
