from fastapi import Request
from sqlalchemy.orm import Session


def get_db(request: Request):
    db: Session = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()


def get_settings(request: Request):
    return request.app.state.settings


def get_ai(request: Request):
    return request.app.state.ai


def get_email(request: Request):
    return request.app.state.email


def get_billing(request: Request):
    return request.app.state.billing


def get_calendar_clients(request: Request):
    return request.app.state.calendars
