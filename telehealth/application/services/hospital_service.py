from dataclasses import dataclass
from typing import Any, Dict, Optional

from ...exceptions import DuplicateField, InvalidState, NotFound, ValidationFailed
from ...models import HOSPITAL_TYPES, utcnow
from ...utils import slugify
from ..query import Caller, Contains, Page, QueryOptions
from .crud_service import CrudService


@dataclass
class HospitalService:
    crud: CrudService

    @property
    def repo(self):
        return self.crud.repo

    def list_hospitals(self, options: QueryOptions, type: Optional[str] = None, city: Optional[str] = None, specialization: Optional[str] = None) -> Page:
        filters: Dict[str, Any] = {"is_active": True}
        if type:
            filters["type"] = type
        if city:
            filters["city"] = city
        if specialization:
            filters["specializations"] = Contains(specialization)
        return self.crud.list(filters, options)

    def get(self, hospital_id: str):
        return self.crud.get(hospital_id)

    def get_by_slug(self, slug: str):
        hospital = self.repo.find_one({"slug": slug})
        if hospital is None:
            raise NotFound("Hospital not found")
        return hospital

    def create(self, data: Dict[str, Any]):
        if data.get("type", "hospital") not in HOSPITAL_TYPES:
            raise ValidationFailed("Invalid hospital type")
        if self.repo.find_one({"name": data["name"]}) is not None:
            raise DuplicateField("Hospital with this name already exists")
        slug = slugify(data["name"])
        if not slug:
            raise ValidationFailed("Hospital name must contain letters or digits")
        if self.repo.find_one({"slug": slug}) is not None:
            raise DuplicateField("Hospital with this name already exists")
        return self.crud.create({**{k: v for k, v in data.items() if v is not None}, "slug": slug})

    def update(self, hospital_id: str, changes: Dict[str, Any]):
        hospital = self.crud.get(hospital_id)
        data = {k: v for k, v in changes.items() if v is not None}
        if "type" in data and data["type"] not in HOSPITAL_TYPES:
            raise ValidationFailed("Invalid hospital type")
        if "name" in data and data["name"] != hospital.name:
            other = self.repo.find_one({"name": data["name"]})
            if other is not None and other.id != hospital.id:
                raise DuplicateField("Hospital with this name already exists")
        return self.crud.update(hospital.id, data)

    def verify(self, caller: Caller, hospital_id: str):
        hospital = self.crud.get(hospital_id)
        if hospital.is_verified:
            raise InvalidState("Hospital is already verified")
        return self.crud.update(hospital.id, {"is_verified": True, "verified_by": caller.id, "verified_at": utcnow()})

    def delete(self, hospital_id: str) -> None:
        self.crud.delete(hospital_id)

    def add_review(self, caller: Caller, hospital_id: str, rating: int, comment: Optional[str] = None):
        if not 1 <= rating <= 5:
            raise ValidationFailed("Rating must be between 1 and 5")
        hospital = self.crud.get(hospital_id)
        reviews = list(hospital.reviews or [])
        reviews.append({
            "userId": caller.id,
            "rating": rating,
            "comment": comment,
            "createdAt": utcnow().isoformat(),
        })
        average = round(sum(r["rating"] for r in reviews) / len(reviews), 1)
        return self.crud.update(hospital.id, {
            "reviews": reviews,
            "rating": average,
            "total_reviews": len(reviews),
        })
