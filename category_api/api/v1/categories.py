"""
Categories API endpoints.

Categories are addressed by their slash-joined name path, e.g.
/api/v1/categories/Electronics/Phones. Fixed routes are registered before
the path catch-all.
"""

from fastapi import APIRouter, Depends, HTTPException, status, Query

from category_api.deps import get_category_service
from category_api.core.category_flatten import category_stats
from category_api.core.category_paths import breadcrumbs, normalize_path
from category_api.core.category_service import CategoryService
from category_api.core.category_tree import Category, CategoryAttribute, dump_tree
from category_api.core.errors import (
    CategoryError,
    CategoryNetworkError,
    CategoryNotFound,
    CategoryValidationError,
    LeafConstraintViolation,
)
from category_api.core.ops.sort_session import SortOrderChange
from category_api.schemas.categories import (
    AttributesResponse,
    CategoriesResponse,
    CategoryAttributeSchema,
    CategoryCreateRequest,
    CategoryDetailResponse,
    CategoryNode,
    CategoryUpdateRequest,
    ChildrenResponse,
    MoveRequest,
    MutationResponse,
    ReorderRequest,
    SortOrderBatchRequest,
    SortOrderBatchResponse,
    ViewResponse,
)

router = APIRouter()


def _http_error(e: CategoryError) -> HTTPException:
    """Map a category error to its HTTP status."""
    if isinstance(e, CategoryNotFound):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(e, LeafConstraintViolation):
        code = status.HTTP_409_CONFLICT
    elif isinstance(e, CategoryValidationError):
        code = status.HTTP_400_BAD_REQUEST
    elif isinstance(e, CategoryNetworkError):
        code = status.HTTP_502_BAD_GATEWAY
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return HTTPException(status_code=code, detail=str(e))


def _attribute_from_schema(schema: CategoryAttributeSchema) -> CategoryAttribute:
    return CategoryAttribute(
        key=schema.key,
        label=schema.label,
        type=schema.type,
        required=schema.required,
        options=schema.options,
    )


def _node(category: Category) -> CategoryNode:
    return CategoryNode.model_validate(category.to_dict())


@router.get("", response_model=CategoriesResponse)
async def get_categories(service: CategoryService = Depends(get_category_service)):
    """
    Get all categories with tree structure, flattened records and stats.
    """
    try:
        tree, records, stats = await service.get_flattened()
        return CategoriesResponse(
            tree=dump_tree(tree),
            flattened=[record.to_dict() for record in records],
            stats=stats.to_dict()
        )
    except CategoryError as e:
        raise _http_error(e)
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error fetching categories: {str(e)}"
        )


@router.get("/children", response_model=ChildrenResponse)
async def get_children(
    path: str = Query("", description="Parent path; empty for root categories"),
    service: CategoryService = Depends(get_category_service)
):
    """
    Current sibling list for a navigation path.

    An unknown path yields an empty list rather than 404.
    """
    try:
        children = await service.get_children(path)
        return ChildrenResponse(
            path=normalize_path(path),
            items=dump_tree(children)
        )
    except CategoryError as e:
        raise _http_error(e)
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error fetching subcategories: {str(e)}"
        )


@router.get("/views/{mode}", response_model=ViewResponse)
async def get_view(
    mode: str,
    path: str = Query("", description="Navigation cursor"),
    edit_mode: bool = Query(False),
    q: str = Query("", description="Name/path filter"),
    service: CategoryService = Depends(get_category_service)
):
    """View model for menu, grid, table or tree rendering."""
    try:
        view = await service.get_view(mode, path, edit_mode, q)
        return ViewResponse(**view.to_dict())
    except CategoryError as e:
        raise _http_error(e)
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error building view: {str(e)}"
        )


@router.post("/move", response_model=MutationResponse)
async def move_category(
    request: MoveRequest,
    service: CategoryService = Depends(get_category_service)
):
    """Move a category one position up or down among its siblings."""
    try:
        tree = await service.move(request.category_id, request.direction)
        return MutationResponse(tree=dump_tree(tree))
    except CategoryError as e:
        raise _http_error(e)
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error moving category: {str(e)}"
        )


@router.post("/reorder", response_model=MutationResponse)
async def reorder_categories(
    request: ReorderRequest,
    service: CategoryService = Depends(get_category_service)
):
    """Persist a drag-and-drop reordering of one sibling list."""
    try:
        tree = await service.reorder(request.parent_path, request.ordered_ids)
        return MutationResponse(tree=dump_tree(tree))
    except CategoryError as e:
        raise _http_error(e)
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error reordering categories: {str(e)}"
        )


@router.post("/featured/{category_id}", response_model=CategoryNode)
async def toggle_featured(
    category_id: int,
    service: CategoryService = Depends(get_category_service)
):
    """Flip the featured flag of a category."""
    try:
        node = await service.toggle_featured(category_id)
        return _node(node)
    except CategoryError as e:
        raise _http_error(e)
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error toggling featured: {str(e)}"
        )


@router.post("/sort-orders", response_model=SortOrderBatchResponse)
async def commit_sort_orders(
    request: SortOrderBatchRequest,
    service: CategoryService = Depends(get_category_service)
):
    """Commit the pending changes of a sort-order edit session."""
    try:
        changes = [
            SortOrderChange(
                id=change.id,
                sort_order=change.sort_order,
                display_priority=change.display_priority,
                is_featured=change.is_featured,
            )
            for change in request.changes
        ]
        updated = await service.commit_sort_changes(changes)
        return SortOrderBatchResponse(updated=updated)
    except CategoryError as e:
        raise _http_error(e)
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error saving sort orders: {str(e)}"
        )


@router.post("", response_model=CategoryNode, status_code=status.HTTP_201_CREATED)
async def create_category(
    request: CategoryCreateRequest,
    service: CategoryService = Depends(get_category_service)
):
    """Create a root category or a subcategory under `parent_path`."""
    try:
        created = await service.add_subcategory(
            request.parent_path,
            request.name,
            icon=request.icon,
            color=request.color
        )
        return _node(created)
    except CategoryError as e:
        raise _http_error(e)
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error creating category: {str(e)}"
        )


@router.get("/{category_path:path}/attributes", response_model=AttributesResponse)
async def get_attributes(
    category_path: str,
    service: CategoryService = Depends(get_category_service)
):
    """Attributes of a category."""
    try:
        attributes = await service.get_attributes(category_path)
        return AttributesResponse(
            path=normalize_path(category_path),
            attributes=[attr.to_dict() for attr in attributes]
        )
    except CategoryError as e:
        raise _http_error(e)
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error fetching attributes: {str(e)}"
        )


@router.post(
    "/{category_path:path}/attributes",
    response_model=AttributesResponse,
    status_code=status.HTTP_201_CREATED
)
async def add_attribute(
    category_path: str,
    request: CategoryAttributeSchema,
    service: CategoryService = Depends(get_category_service)
):
    """Add an attribute to a leaf category."""
    try:
        node = await service.add_attribute(category_path, _attribute_from_schema(request))
        return AttributesResponse(
            path=normalize_path(category_path),
            attributes=[attr.to_dict() for attr in node.attributes]
        )
    except CategoryError as e:
        raise _http_error(e)
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error adding attribute: {str(e)}"
        )


@router.put("/{category_path:path}/attributes/{key}", response_model=AttributesResponse)
async def update_attribute(
    category_path: str,
    key: str,
    request: CategoryAttributeSchema,
    service: CategoryService = Depends(get_category_service)
):
    """Replace an attribute definition; its key cannot change."""
    try:
        node = await service.update_attribute(category_path, key, _attribute_from_schema(request))
        return AttributesResponse(
            path=normalize_path(category_path),
            attributes=[attr.to_dict() for attr in node.attributes]
        )
    except CategoryError as e:
        raise _http_error(e)
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error updating attribute: {str(e)}"
        )


@router.delete("/{category_path:path}/attributes/{key}", response_model=AttributesResponse)
async def delete_attribute(
    category_path: str,
    key: str,
    service: CategoryService = Depends(get_category_service)
):
    """Remove an attribute from a leaf category."""
    try:
        node = await service.delete_attribute(category_path, key)
        return AttributesResponse(
            path=normalize_path(category_path),
            attributes=[attr.to_dict() for attr in node.attributes]
        )
    except CategoryError as e:
        raise _http_error(e)
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error deleting attribute: {str(e)}"
        )


@router.get("/{category_path:path}", response_model=CategoryDetailResponse)
async def get_category(
    category_path: str,
    service: CategoryService = Depends(get_category_service)
):
    """Get a single category by path (404 when it does not resolve)."""
    try:
        category = await service.get_category(category_path)
        path = normalize_path(category_path)
        return CategoryDetailResponse(
            path=path,
            category=_node(category),
            is_leaf=category.is_leaf,
            breadcrumbs=[{"name": name, "path": crumb} for name, crumb in breadcrumbs(path)],
            stats=category_stats(category).to_dict()
        )
    except CategoryError as e:
        raise _http_error(e)
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error fetching category: {str(e)}"
        )


@router.put("/{category_path:path}", response_model=CategoryNode)
async def update_category(
    category_path: str,
    request: CategoryUpdateRequest,
    service: CategoryService = Depends(get_category_service)
):
    """Update name, icon, color, featured flag or display priority."""
    patch = request.model_dump(exclude_none=True)
    if not patch:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No fields to update"
        )

    try:
        node = await service.update(category_path, patch)
        return _node(node)
    except CategoryError as e:
        raise _http_error(e)
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error updating category: {str(e)}"
        )


@router.delete("/{category_path:path}")
async def delete_category(
    category_path: str,
    confirm: bool = Query(False, description="Must be true; deletes the whole subtree"),
    service: CategoryService = Depends(get_category_service)
):
    """Delete a category and all of its subcategories."""
    if not confirm:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Deleting a category removes all of its subcategories; pass confirm=true"
        )

    try:
        await service.delete(category_path)
        return {"success": True, "path": normalize_path(category_path)}
    except CategoryError as e:
        raise _http_error(e)
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error deleting category: {str(e)}"
        )
