"""Query-string dependencies for the file listing and search endpoints.

Raw values are handed to the pydantic facet models; their errors come back
as a 400 listing each offending camelCase parameter.
"""

from typing import List, Optional, Type, TypeVar

import pydantic
from fastapi import Query
from pydantic.alias_generators import to_camel

from ..exceptions import ValidationError
from ..services.file_query import FileFacets, FileQueryParams, SearchQueryParams

FacetsT = TypeVar("FacetsT", bound=FileFacets)


def parse_params(model: Type[FacetsT], **values) -> FacetsT:
    """Build *model* from the supplied values; absent ones take model defaults."""
    try:
        return model(**{k: v for k, v in values.items() if v is not None})
    except pydantic.ValidationError as e:
        errors = []
        for err in e.errors():
            field = ".".join(to_camel(str(part)) for part in err.get("loc", ()) if isinstance(part, str))
            message = err.get("msg", "Invalid value").removeprefix("Value error, ")
            errors.append({"field": field or "request", "message": message})
        raise ValidationError(
            errors[0]["message"] if len(errors) == 1 else "Invalid query parameters",
            field=errors[0]["field"] if len(errors) == 1 else None,
            errors=errors,
        )


def file_list_params(
    folder_id: Optional[str] = Query(None, alias="folderId"),
    search: Optional[str] = Query(None),
    type: Optional[str] = Query(None, description="all | image | video | document"),
    tags: Optional[List[str]] = Query(None, description="Tag names, comma-separated or repeated"),
    min_size: Optional[str] = Query(None, alias="minSize"),
    max_size: Optional[str] = Query(None, alias="maxSize"),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    sort: Optional[str] = Query(None, description="name | createdAt | updatedAt | size"),
    order: Optional[str] = Query(None, description="asc | desc"),
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
) -> FileQueryParams:
    return parse_params(
        FileQueryParams,
        folder_id=folder_id,
        search=search,
        type=type,
        tags=tags,
        min_size=min_size,
        max_size=max_size,
        start_date=start_date,
        end_date=end_date,
        sort=sort,
        order=order,
        page=page,
        limit=limit,
    )


def search_params(
    q: Optional[str] = Query(None, description="Search text; every term must match"),
    folder_id: Optional[str] = Query(None, alias="folderId"),
    type: Optional[str] = Query(None),
    tags: Optional[List[str]] = Query(None),
    min_size: Optional[str] = Query(None, alias="minSize"),
    max_size: Optional[str] = Query(None, alias="maxSize"),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    sort_by: Optional[str] = Query(None, alias="sortBy", description="relevance | name | createdAt | size"),
    sort_order: Optional[str] = Query(None, alias="sortOrder"),
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
) -> SearchQueryParams:
    return parse_params(
        SearchQueryParams,
        search=q,
        folder_id=folder_id,
        type=type,
        tags=tags,
        min_size=min_size,
        max_size=max_size,
        start_date=start_date,
        end_date=end_date,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        limit=limit,
    )
