"""Read-only listing of letter requests."""

import math
from datetime import timezone

from sqlalchemy.orm import Session, joinedload

from siades_api.letters.schemas import LetterRequestQuery, parse_input
from siades_api.models import LetterRequest


def _naive_utc(value):
    """Timestamps are stored as naive UTC."""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class LetterRequestQueries:
    """Filter, sort and paginate letter requests."""

    def __init__(self, db: Session):
        """Initialize query service."""
        self.db = db

    def list(self, params: dict) -> dict:
        """List requests matching the given filters."""
        query_params = parse_input(LetterRequestQuery, params)

        query = self.db.query(LetterRequest)
        if query_params.status:
            query = query.filter(LetterRequest.status == query_params.status)
        if query_params.letter_type_id:
            query = query.filter(LetterRequest.letter_type_id == query_params.letter_type_id)
        if query_params.resident_id:
            query = query.filter(LetterRequest.resident_id == query_params.resident_id)
        if query_params.operator_id:
            query = query.filter(LetterRequest.operator_id == query_params.operator_id)
        if query_params.kepala_desa_id:
            query = query.filter(LetterRequest.kepala_desa_id == query_params.kepala_desa_id)
        if query_params.start_date:
            query = query.filter(LetterRequest.created_at >= _naive_utc(query_params.start_date))
        if query_params.end_date:
            query = query.filter(LetterRequest.created_at <= _naive_utc(query_params.end_date))

        total = query.count()

        sort_column = getattr(LetterRequest, query_params.sort_by)
        order = sort_column.asc() if query_params.sort_order == "asc" else sort_column.desc()

        items = (
            query.options(joinedload(LetterRequest.letter_type))
            .order_by(order, LetterRequest.id)
            .offset((query_params.page - 1) * query_params.limit)
            .limit(query_params.limit)
            .all()
        )

        return {
            "items": items,
            "page": query_params.page,
            "limit": query_params.limit,
            "total": total,
            "total_pages": math.ceil(total / query_params.limit),
        }
