"""实验 API：创建、关闭、删除、可靠性与 CSV 导出。"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import PlainTextResponse

from bioplastic_lab.dependencies import get_notebook
from bioplastic_lab.schemas.records import Experiment, Practice, Reagents
from bioplastic_lab.schemas.requests import ExperimentCreate, ExperimentCreated
from bioplastic_lab.services.calculator import reagents_from_starch
from bioplastic_lab.services.notebook import Notebook
from bioplastic_lab.services.statistics import ReliabilityReport

router = APIRouter()


@router.get("/reagents", response_model=Reagents)
def calculate_reagents(starch_g: float = Query(..., description="淀粉质量（g）")):
    """按 10 g 淀粉基准换算其余试剂。"""
    return reagents_from_starch(starch_g)


@router.post("/", response_model=ExperimentCreated, status_code=status.HTTP_201_CREATED)
def start_experiment(payload: ExperimentCreate, notebook: Notebook = Depends(get_notebook)):
    """开始一个实验并批量生成重复练习。"""
    if payload.reagents is None and payload.starch_g is None:
        raise HTTPException(status_code=400, detail="请提供淀粉质量或手工试剂用量")
    base = payload.reagents or reagents_from_starch(payload.starch_g)
    experiment, practices = notebook.start_experiment(base, payload.replicas)
    return ExperimentCreated(experiment=experiment, practices=practices)


@router.get("/", response_model=List[Experiment])
def list_experiments(notebook: Notebook = Depends(get_notebook)):
    return notebook.list_experiments()


def _get_or_404(notebook: Notebook, experiment_number: int) -> Experiment:
    experiment = notebook.get_experiment(experiment_number)
    if experiment is None:
        raise HTTPException(status_code=404, detail="实验不存在")
    return experiment


@router.get("/{experiment_number}", response_model=Experiment)
def get_experiment(experiment_number: int, notebook: Notebook = Depends(get_notebook)):
    return _get_or_404(notebook, experiment_number)


@router.get("/{experiment_number}/practices", response_model=List[Practice])
def list_experiment_practices(experiment_number: int, notebook: Notebook = Depends(get_notebook)):
    return notebook.search(str(experiment_number), mode="exp") or []


@router.post("/{experiment_number}/close", response_model=Experiment)
def close_experiment(experiment_number: int, notebook: Notebook = Depends(get_notebook)):
    """关闭实验（不可重新打开）。"""
    experiment = notebook.close_experiment(experiment_number)
    if experiment is None:
        raise HTTPException(status_code=404, detail="实验不存在")
    return experiment


@router.delete("/{experiment_number}")
def delete_experiment(
    experiment_number: int, notebook: Notebook = Depends(get_notebook)
) -> dict[str, str]:
    """删除实验并级联删除其练习（仅管理员）。"""
    if not notebook.delete_experiment(experiment_number):
        raise HTTPException(status_code=404, detail="实验不存在")
    return {"status": "deleted"}


@router.get("/{experiment_number}/reliability", response_model=ReliabilityReport)
def get_reliability(experiment_number: int, notebook: Notebook = Depends(get_notebook)):
    """时间与温度的重复性判定。"""
    _get_or_404(notebook, experiment_number)
    return notebook.reliability(experiment_number)


@router.get("/{experiment_number}/export", response_class=PlainTextResponse)
def export_experiment(experiment_number: int, notebook: Notebook = Depends(get_notebook)):
    _get_or_404(notebook, experiment_number)
    filename, content = notebook.export_csv(experiment_number)
    return PlainTextResponse(
        content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
