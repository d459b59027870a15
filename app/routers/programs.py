"""
Program and student endpoints.

Mounts under ``/api/programs`` (prefix set in ``main.py``).

Endpoints
---------
GET    /{code}                           — One program (empty object if absent).
PUT    /{code}                           — Create or shallow-update a program.
GET    /{code}/students                  — Full student records.
POST   /{code}/students                  — Add a student (serial = N + 1).
GET    /{code}/students-list             — Serial / name / package projection.
PUT    /{code}/students/{serial_number}  — Shallow-update a student.
DELETE /{code}/students/{serial_number}  — Remove a student and renumber.

Students are identified by their serial number, which is reassigned on every
deletion; clients should re-read the list after deleting.
"""

from __future__ import annotations

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Body, Path, status

from app.routers.deps import DatasetDep, MutationDep, commit, envelope, http_errors
from app.schemas.common import ApiResponse
from app.schemas.dataset import Dataset, Student
from app.services import dataset_service
from app.utils.constants import (
    EVENT_PROGRAM_UPDATED,
    EVENT_STUDENT_ADDED,
    EVENT_STUDENT_DELETED,
    EVENT_STUDENT_UPDATED,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Programs"])

CodePath = Annotated[str, Path(description="Program code, e.g. CH, YSP, ICCSP, OTM_GA.")]
SerialPath = Annotated[int, Path(ge=1, description="1-based serial number within the program.")]


@router.get("/{code}", response_model=ApiResponse, summary="Get a program")
def get_program(code: CodePath, dataset: DatasetDep) -> ApiResponse:
    program = dataset.sponsorship_programs.get(code)
    data = program.model_dump(mode="json") if program else {}
    return envelope(data, f"Program {code} loaded successfully")


@router.put(
    "/{code}",
    response_model=ApiResponse,
    summary="Create or update a program",
    responses={404: {"description": "Unknown program code."}},
)
def put_program(
    code: CodePath,
    updates: Annotated[dict[str, Any], Body(description="Program fields to merge.")],
    service: MutationDep,
) -> ApiResponse:
    logger.info("PUT /programs/%s fields=%s", code, sorted(updates))
    return commit(
        service,
        lambda dataset: dataset_service.upsert_program(dataset, code, updates),
        event_type=EVENT_PROGRAM_UPDATED,
        message=f"Program {code} updated successfully",
        program=code,
    )


@router.get(
    "/{code}/students",
    response_model=ApiResponse,
    summary="List students of a program",
    responses={404: {"description": "Program not found."}},
)
def get_students(code: CodePath, dataset: DatasetDep) -> ApiResponse:
    with http_errors():
        program = dataset_service.get_program(dataset, code)
    students = [s.model_dump(mode="json") for s in program.students]
    return envelope(students, f"Students of {code} loaded successfully")


@router.get(
    "/{code}/students-list",
    response_model=ApiResponse,
    summary="Student name list for sponsor forms",
    responses={404: {"description": "Program not found."}},
)
def get_students_list(code: CodePath, dataset: DatasetDep) -> ApiResponse:
    with http_errors():
        students = dataset_service.list_students(dataset, code)
    return envelope(students, f"Student list of {code} loaded successfully")


@router.post(
    "/{code}/students",
    response_model=ApiResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a student",
    description=(
        "Appends the student with the next serial number. Financial fields may be "
        "numbers, numeric strings or spreadsheet formulas; derived fields are "
        "computed immediately."
    ),
    responses={
        404: {"description": "Program not found."},
        422: {"description": "Missing student name or invalid fields."},
    },
)
def post_student(code: CodePath, student: Student, service: MutationDep) -> ApiResponse:
    def mutate(dataset: Dataset) -> Student:
        return dataset_service.add_student(dataset, code, student, service.repository.rate)

    return commit(
        service,
        mutate,
        event_type=EVENT_STUDENT_ADDED,
        message=f"Student {student.full_name} added to {code}",
        program=code,
    )


@router.put(
    "/{code}/students/{serial_number}",
    response_model=ApiResponse,
    summary="Update a student",
    responses={404: {"description": "Program or student not found."}},
)
def put_student(
    code: CodePath,
    serial_number: SerialPath,
    updates: Annotated[dict[str, Any], Body(description="Student fields to merge.")],
    service: MutationDep,
) -> ApiResponse:
    def mutate(dataset: Dataset) -> Student:
        return dataset_service.update_student(dataset, code, serial_number, updates, service.repository.rate)

    return commit(
        service,
        mutate,
        event_type=EVENT_STUDENT_UPDATED,
        message=f"Student {serial_number} in {code} updated successfully",
        program=code,
    )


@router.delete(
    "/{code}/students/{serial_number}",
    response_model=ApiResponse,
    summary="Delete a student",
    responses={404: {"description": "Program or student not found."}},
)
def delete_student(code: CodePath, serial_number: SerialPath, service: MutationDep) -> ApiResponse:
    return commit(
        service,
        lambda dataset: dataset_service.delete_student(dataset, code, serial_number),
        event_type=EVENT_STUDENT_DELETED,
        message=f"Student {serial_number} removed from {code}",
        program=code,
    )
