"""审计日志 API。"""

from typing import List

from fastapi import APIRouter, Depends

from bioplastic_lab.dependencies import get_notebook
from bioplastic_lab.schemas.records import AuditEntry
from bioplastic_lab.services.notebook import Notebook

router = APIRouter()


@router.get("/", response_model=List[AuditEntry])
def get_audit_log(newest_first: bool = True, notebook: Notebook = Depends(get_notebook)):
    """返回审计日志；默认按时间倒序展示。"""
    entries = notebook.audit_log()
    return list(reversed(entries)) if newest_first else entries


@router.delete("/")
def clear_audit_log(notebook: Notebook = Depends(get_notebook)) -> dict[str, str]:
    notebook.clear_audit()
    return {"status": "cleared"}
