from __future__ import annotations

from pydantic import BaseModel, ConfigDict

# Example provider response:
# {"access_token": "d4b39Hjxo2m1aPiiLwuZyh6R", "expires_in": 899,
#  "refresh_token": "J5P7AX7b6L9LTiWEbShzheNV", "token_type": "bearer"}


class TokenPair(BaseModel):
    # Keep unknown provider fields so the results page shows the full payload.
    # Validation errors must not echo token values into the logs.
    model_config = ConfigDict(extra="allow", hide_input_in_errors=True)

    access_token: str
    refresh_token: str
    expires_in: int
    token_type: str = "bearer"
