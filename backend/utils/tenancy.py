from fastapi import Depends

from utils.auth_utils import Identity, get_current_user


def get_tenant_id(user: Identity = Depends(get_current_user)) -> str:
    # Every row is owned by the user that created it
    return user.id
