"""
数据隐私规则API路由
"""
from typing import Dict, List, Literal, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, ConfigDict, Field

from ..services.dto import Rule, RuleCollectionView, RuleView, SaveResult
from ..services.errors import RuleLoadError
from ..services.rule_editor_service import (
    RuleEditorSession,
    RuleSessionRegistry,
    get_rule_session_registry,
)
from ..services.rule_types import (
    ActionType,
    DataType,
    get_action_type_options,
    get_data_type_options,
)
from ..utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/api/projects/{project_id}/data-privacy-rules", tags=["data-privacy-rules"])


# ============ Request/Response Models ============

class UpdateRuleRequest(BaseModel):
    """更新规则请求（整体替换）"""
    model_config = ConfigDict(populate_by_name=True)

    action: Optional[ActionType] = Field(None, description="脱敏动作")
    data: Optional[DataType] = Field(None, description="数据类别")
    source: str = Field("", alias="from", description="来源选择表达式")


class FieldValidationResponse(BaseModel):
    """字段校验响应"""
    rule_id: int
    field: str
    error: Optional[str] = None


class RuleOptionsResponse(BaseModel):
    """下拉选项响应"""
    actions: List[Dict[str, str]]
    data: List[Dict[str, str]]


async def _get_session(registry: RuleSessionRegistry, project_id: str) -> RuleEditorSession:
    """获取已加载的编辑会话，加载失败时返回500"""
    try:
        return await registry.get_loaded_session(project_id)
    except RuleLoadError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"加载数据隐私规则失败: {str(e)}"
        )


def _to_view(session: RuleEditorSession, rule: Rule) -> RuleView:
    return RuleView(
        id=rule.id,
        action=rule.action,
        data=rule.data,
        source=rule.source,
        errors=session.store.errors.get(rule.id, {}),
    )


# ============ API Endpoints ============

@router.get("", response_model=RuleCollectionView, status_code=status.HTTP_200_OK)
async def get_rules(
    project_id: str,
    registry: RuleSessionRegistry = Depends(get_rule_session_registry)
):
    """
    获取规则集合快照（首次访问时加载）
    """
    try:
        session = await _get_session(registry, project_id)
        return session.snapshot()

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"获取数据隐私规则失败: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"获取数据隐私规则失败: {str(e)}"
        )


@router.get("/options", response_model=RuleOptionsResponse, status_code=status.HTTP_200_OK)
async def get_rule_options(project_id: str):
    """
    获取动作与数据类别的下拉选项
    """
    return RuleOptionsResponse(
        actions=get_action_type_options(),
        data=get_data_type_options(),
    )


@router.post("/rules", response_model=RuleView, status_code=status.HTTP_201_CREATED)
async def add_rule(
    project_id: str,
    registry: RuleSessionRegistry = Depends(get_rule_session_registry)
):
    """
    新增一条默认规则
    """
    try:
        session = await _get_session(registry, project_id)
        rule = session.add()

        logger.info(f"新增数据隐私规则: project_id={project_id}, id={rule.id}")
        return _to_view(session, rule)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"新增数据隐私规则失败: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"新增数据隐私规则失败: {str(e)}"
        )


@router.put("/rules/{rule_id}", response_model=RuleView, status_code=status.HTTP_200_OK)
async def update_rule(
    project_id: str,
    rule_id: int,
    request: UpdateRuleRequest,
    registry: RuleSessionRegistry = Depends(get_rule_session_registry)
):
    """
    更新规则
    """
    try:
        session = await _get_session(registry, project_id)
        rule = Rule(id=rule_id, action=request.action, data=request.data, source=request.source)

        if not session.update(rule):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"数据隐私规则不存在: {rule_id}"
            )

        return _to_view(session, rule)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"更新数据隐私规则失败: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"更新数据隐私规则失败: {str(e)}"
        )


@router.delete("/rules/{rule_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_rule(
    project_id: str,
    rule_id: int,
    registry: RuleSessionRegistry = Depends(get_rule_session_registry)
):
    """
    删除规则（保存前不影响已提交的规则）
    """
    try:
        session = await _get_session(registry, project_id)

        if not session.delete(rule_id):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"数据隐私规则不存在: {rule_id}"
            )

        logger.info(f"删除数据隐私规则: project_id={project_id}, id={rule_id}")
        return None

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"删除数据隐私规则失败: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"删除数据隐私规则失败: {str(e)}"
        )


@router.post(
    "/rules/{rule_id}/validate",
    response_model=FieldValidationResponse,
    status_code=status.HTTP_200_OK
)
async def validate_rule_field(
    project_id: str,
    rule_id: int,
    field: Literal["action", "data", "from"] = Query(..., description="字段名"),
    registry: RuleSessionRegistry = Depends(get_rule_session_registry)
):
    """
    字段失焦校验
    """
    try:
        session = await _get_session(registry, project_id)

        if session.store.get_rule(rule_id) is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"数据隐私规则不存在: {rule_id}"
            )

        error = session.validate_field(rule_id, field)
        return FieldValidationResponse(rule_id=rule_id, field=field, error=error)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"校验数据隐私规则字段失败: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"校验数据隐私规则字段失败: {str(e)}"
        )


@router.post("/save", response_model=SaveResult, status_code=status.HTTP_200_OK)
async def save_rules(
    project_id: str,
    registry: RuleSessionRegistry = Depends(get_rule_session_registry)
):
    """
    校验并保存规则
    """
    try:
        session = await _get_session(registry, project_id)
        result = await session.save()

        if not result.success:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail={"error": result.error, "invalid_fields": result.invalid_fields}
            )

        logger.info(f"数据隐私规则保存成功: project_id={project_id}")
        return result

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"保存数据隐私规则失败: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"保存数据隐私规则失败: {str(e)}"
        )


@router.post("/cancel", response_model=RuleCollectionView, status_code=status.HTTP_200_OK)
async def cancel_changes(
    project_id: str,
    registry: RuleSessionRegistry = Depends(get_rule_session_registry)
):
    """
    放弃未保存的修改
    """
    try:
        session = await _get_session(registry, project_id)
        session.cancel()
        return session.snapshot()

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"放弃数据隐私规则修改失败: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"放弃数据隐私规则修改失败: {str(e)}"
        )
