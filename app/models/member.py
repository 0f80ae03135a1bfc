from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

# Shape returned by GET /api/graphql/member for MEMBER_QUERY:
#
# {"currentMember": {
#     "id": "2406643", "email": "member@example.com", "fullName": "Zam",
#     "subscriptions": [
#         {"plan": {"id": "65673", "name": "One time success"},
#          "active": true, "expiresAt": null}]}}


class Plan(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: str
    name: str


class Subscription(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    active: bool
    expires_at: int | str | None = Field(default=None, alias="expiresAt")
    plan: Plan


class Member(BaseModel):
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    id: str
    email: str
    full_name: str | None = Field(default=None, alias="fullName")
    subscriptions: list[Subscription] = Field(default_factory=list)

    @property
    def active_subscriptions(self) -> list[Subscription]:
        return [s for s in self.subscriptions if s.active]


class MemberQueryResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    current_member: Member = Field(alias="currentMember")
