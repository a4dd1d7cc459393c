"""
Category schemas.
"""

from pydantic import BaseModel, Field, field_validator, model_validator
from typing import List, Dict, Optional, Literal


AttributeType = Literal["string", "number", "boolean", "array"]


class CategoryAttributeSchema(BaseModel):
    """Custom field definition on a leaf category."""
    key: str = Field(..., min_length=1, description="Stable key within the category")
    label: str = Field(..., min_length=1)
    type: AttributeType = "string"
    required: bool = False
    options: Optional[List[str]] = Field(None, description="Selectable values (array type only)")

    @field_validator('key', 'label')
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @model_validator(mode='after')
    def drop_options_for_scalar_types(self):
        """Options only exist for the array type"""
        if self.type != "array":
            self.options = None
        elif self.options is None:
            self.options = []
        return self

    class Config:
        json_schema_extra = {
            "example": {
                "key": "brand",
                "label": "Brand",
                "type": "array",
                "required": True,
                "options": ["Apple", "Samsung"]
            }
        }


class CategoryNode(BaseModel):
    """Category node in tree structure."""
    id: int
    name: str
    icon: Optional[str] = None
    color: Optional[str] = None
    is_featured: bool = False
    sort_order: int = 0
    display_priority: int = 0
    subcategories: List["CategoryNode"] = []
    attributes: List[CategoryAttributeSchema] = []


class FlatCategoryNode(BaseModel):
    """Flattened category with path and depth."""
    id: int
    name: str
    path: str
    level: int = 0
    icon: Optional[str] = None
    color: Optional[str] = None
    is_featured: bool = False
    sort_order: int = 0
    display_priority: int = 0
    is_leaf: bool = True
    subcategory_count: int = 0
    attributes: List[CategoryAttributeSchema] = []


class TreeStatsSchema(BaseModel):
    """Whole-tree statistics."""
    total_categories: int = 0
    root_categories: int = 0
    leaf_categories: int = 0
    total_attributes: int = 0
    featured_categories: int = 0
    max_depth: int = 0


class CategoryStatsSchema(BaseModel):
    """Statistics for one category's subtree."""
    subcategory_count: int = 0
    total_subcategories: int = 0
    attribute_count: int = 0
    total_attributes: int = 0


class CategoriesResponse(BaseModel):
    """Categories response with tree structure."""
    tree: List[CategoryNode]
    flattened: List[FlatCategoryNode]
    stats: TreeStatsSchema


class ChildrenResponse(BaseModel):
    """Current sibling list for a path."""
    path: str
    items: List[CategoryNode]


class CategoryDetailResponse(BaseModel):
    """Single category with breadcrumbs and statistics."""
    path: str
    category: CategoryNode
    is_leaf: bool
    breadcrumbs: List[Dict[str, str]] = []
    stats: CategoryStatsSchema


class CategoryCreateRequest(BaseModel):
    """Create category request ("" parent_path creates a root category)."""
    name: str = Field(..., min_length=1)
    parent_path: str = ""
    icon: Optional[str] = None
    color: Optional[str] = None


class CategoryUpdateRequest(BaseModel):
    """Update category request (partial)."""
    name: Optional[str] = Field(None, min_length=1)
    icon: Optional[str] = None
    color: Optional[str] = None
    is_featured: Optional[bool] = None
    display_priority: Optional[int] = None


class MoveRequest(BaseModel):
    """Move a category one step among its siblings."""
    category_id: int
    direction: Literal["up", "down"]


class ReorderRequest(BaseModel):
    """Persist a reordered sibling list (drag and drop)."""
    parent_path: str = ""
    ordered_ids: List[int] = Field(..., min_length=1, description="Sibling IDs in the new order")

    @field_validator('ordered_ids')
    @classmethod
    def no_duplicates(cls, v: List[int]) -> List[int]:
        if len(v) != len(set(v)):
            raise ValueError("ordered_ids contains duplicates")
        return v


class SortOrderChangeSchema(BaseModel):
    """One pending change from a sort-order edit session."""
    id: int
    sort_order: int
    display_priority: int = 0
    is_featured: bool = False


class SortOrderBatchRequest(BaseModel):
    """Batch commit of sort-order edit session changes."""
    changes: List[SortOrderChangeSchema]


class SortOrderBatchResponse(BaseModel):
    """Result of a sort-order batch commit."""
    success: bool = True
    updated: int


class MutationResponse(BaseModel):
    """Result of a tree-wide mutation: the refreshed tree."""
    success: bool = True
    tree: List[CategoryNode]


class CategoryViewItemSchema(BaseModel):
    """Rendered category with its available actions."""
    id: int
    name: str
    path: str
    level: int
    icon: str
    color: str
    is_featured: bool
    is_leaf: bool
    subcategory_count: int
    attribute_count: int
    actions: List[str] = []
    children: List["CategoryViewItemSchema"] = []


class ViewResponse(BaseModel):
    """View model for menu, grid, table or tree modes."""
    mode: Literal["menu", "grid", "table", "tree"]
    current_path: str
    edit_mode: bool
    items: List[CategoryViewItemSchema]
    breadcrumbs: List[Dict[str, str]]
    stats: TreeStatsSchema


class AttributesResponse(BaseModel):
    """Attributes of a leaf category."""
    path: str
    attributes: List[CategoryAttributeSchema]
