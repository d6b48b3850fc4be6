from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class GenerateRequest(BaseModel):
    requirements: str = ""


class EditRequest(BaseModel):
    """Change request for an existing architecture"""
    architectureId: Optional[str] = None
    editRequest: str
    currentNodes: List[Dict[str, Any]] = Field(default_factory=list)
    currentEdges: List[Dict[str, Any]] = Field(default_factory=list)


class IntentRequest(BaseModel):
    message: str
    hasArchitecture: bool = False


class ChatRequest(BaseModel):
    message: str
    architectureId: Optional[str] = None


class LayoutNode(BaseModel):
    nodeId: str
    width: float = 180
    height: float = 180


class LayoutEdge(BaseModel):
    source: str
    target: str


class LayoutRequest(BaseModel):
    nodes: List[LayoutNode]
    edges: List[LayoutEdge] = Field(default_factory=list)


class ExportRequest(BaseModel):
    architectureId: str
    format: Literal["terraform", "bicep", "arm"] = "terraform"
    configurations: Dict[str, Any] = Field(default_factory=dict)
