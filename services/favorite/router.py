"""
services/favorite/router.py
Sponsor shortlist of favourite maids.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from config.hasura_client import HasuraClient, get_hasura
from shared.middleware.auth import CurrentUser, require_sponsor
from shared.schemas.schemas import MessageResponse

router = APIRouter(prefix="/favorites", tags=["Favorites"])

GET_FAVORITES = """
query GetFavorites($sponsorId: String!) {
  favorites(where: {sponsor_id: {_eq: $sponsorId}}, order_by: {created_at: desc}) {
    id
    maid_id
    created_at
    maid_profile {
      id
      full_name
      nationality
      current_location
      experience_years
      profile_photo_url
      availability_status
      verification_status
    }
  }
}
"""

FIND_FAVORITE = """
query FindFavorite($sponsorId: String!, $maidId: String!) {
  favorites(where: {sponsor_id: {_eq: $sponsorId}, maid_id: {_eq: $maidId}}, limit: 1) {
    id
  }
}
"""

ADD_FAVORITE = """
mutation AddFavorite($data: favorites_insert_input!) {
  insert_favorites_one(object: $data) {
    id
    sponsor_id
    maid_id
    created_at
  }
}
"""

REMOVE_FAVORITE = """
mutation RemoveFavorite($sponsorId: String!, $maidId: String!) {
  delete_favorites(where: {sponsor_id: {_eq: $sponsorId}, maid_id: {_eq: $maidId}}) {
    affected_rows
  }
}
"""


@router.get("")
async def list_favorites(
    current_user: CurrentUser = Depends(require_sponsor),
    gql: HasuraClient = Depends(get_hasura),
):
    data = await gql.execute(GET_FAVORITES, {"sponsorId": current_user.id}, token=current_user.token)
    items = data.get("favorites") or []
    return {"items": items, "total": len(items)}


@router.post("/{maid_id}", status_code=status.HTTP_201_CREATED)
async def add_favorite(
    maid_id: str,
    current_user: CurrentUser = Depends(require_sponsor),
    gql: HasuraClient = Depends(get_hasura),
):
    variables = {"sponsorId": current_user.id, "maidId": maid_id}
    existing = await gql.execute(FIND_FAVORITE, variables, token=current_user.token)
    if existing.get("favorites"):
        raise HTTPException(status_code=409, detail="Maid is already in your favorites")

    result = await gql.execute(
        ADD_FAVORITE,
        {"data": {"sponsor_id": current_user.id, "maid_id": maid_id}},
        token=current_user.token,
    )
    return result.get("insert_favorites_one")


@router.delete("/{maid_id}", response_model=MessageResponse)
async def remove_favorite(
    maid_id: str,
    current_user: CurrentUser = Depends(require_sponsor),
    gql: HasuraClient = Depends(get_hasura),
):
    data = await gql.execute(
        REMOVE_FAVORITE,
        {"sponsorId": current_user.id, "maidId": maid_id},
        token=current_user.token,
    )
    if not (data.get("delete_favorites") or {}).get("affected_rows"):
        raise HTTPException(status_code=404, detail="Favorite not found")
    return MessageResponse(message="Removed from favorites")
