"""练习 API：检索、加热数据、照片与删除。"""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status

from bioplastic_lab.dependencies import get_notebook
from bioplastic_lab.models.enums import SearchMode
from bioplastic_lab.schemas.records import Practice
from bioplastic_lab.schemas.requests import HeatData, HeatingLightResponse, PracticeUpdate
from bioplastic_lab.services.notebook import Notebook
from bioplastic_lab.utils.photos import read_upload_as_data_url

router = APIRouter()


def _apply(practice: Optional[Practice]) -> Practice:
    if practice is None:
        raise HTTPException(status_code=404, detail="练习不存在")
    return practice


@router.get("/", response_model=List[Practice])
def list_practices(mine_only: bool = False, notebook: Notebook = Depends(get_notebook)):
    """全部可见练习，按实验号、练习号排序。"""
    return notebook.list_all(mine_only=mine_only)


@router.get("/search", response_model=List[Practice])
def search_practices(
    q: str = Query("", description="练习编码或实验号"),
    mode: SearchMode = SearchMode.AUTO,
    notebook: Notebook = Depends(get_notebook),
):
    return notebook.search(q, mode) or []


@router.get("/heating-light", response_model=HeatingLightResponse)
def get_heating_light(seconds: int = Query(..., ge=0), notebook: Notebook = Depends(get_notebook)):
    return HeatingLightResponse(
        seconds=seconds,
        target_seconds=notebook.settings.heating_target_seconds,
        light=notebook.heating_light(seconds),
    )


@router.get("/{code}", response_model=Practice)
def get_practice(code: str, notebook: Notebook = Depends(get_notebook)):
    return _apply(notebook.get_practice(code))


@router.post("/{code}/open", response_model=Practice)
def open_practice(code: str, notebook: Notebook = Depends(get_notebook)):
    """设为当前操作的练习；照片只会合并到当前练习。"""
    practice = notebook.open_practice(code)
    if practice is None:
        raise HTTPException(status_code=404, detail="练习不存在")
    return practice


@router.patch("/{code}", response_model=Practice)
def update_practice(
    code: str, payload: PracticeUpdate, notebook: Notebook = Depends(get_notebook)
):
    return _apply(notebook.update_practice(code, payload.model_dump(exclude_unset=True)))


@router.post("/{code}/heat", response_model=Practice)
def save_heat_data(code: str, payload: HeatData, notebook: Notebook = Depends(get_notebook)):
    """保存计时秒数、最高温度与加热观察。"""
    return _apply(
        notebook.save_heat_data(
            code,
            seconds=payload.seconds,
            max_temp=payload.max_temp,
            heating_notes=payload.heating_notes,
        )
    )


@router.post("/{code}/photo", response_model=Practice)
async def upload_photo(
    code: str,
    file: UploadFile = File(...),
    final_notes: Optional[str] = Form(None),
    notebook: Notebook = Depends(get_notebook),
):
    """上传最终照片；读取完成时若当前练习已切换，则丢弃结果并返回 409。"""
    if notebook.editable_practice(code) is None:
        raise HTTPException(status_code=404, detail="练习不存在")
    data_url = await read_upload_as_data_url(file)
    practice = notebook.attach_photo(code, data_url, final_notes)
    if practice is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="当前练习已切换，照片未保存",
        )
    return practice


@router.delete("/{code}")
def delete_practice(code: str, notebook: Notebook = Depends(get_notebook)) -> dict[str, str]:
    if not notebook.delete_practice(code):
        raise HTTPException(status_code=404, detail="练习不存在")
    return {"status": "deleted"}
