from flask import Blueprint, request
from flask_jwt_extended import jwt_required
from tubex.services.policy import current_resolver

access_bp = Blueprint('access', __name__)


@access_bp.get('/me')
@jwt_required()
def my_access():
    resolver = current_resolver()
    user = resolver.user
    return {
        'user': {
            'userId': user.user_id,
            'role': user.role,
            'companyId': user.company_id,
            'companyType': user.company_type,
        } if user else None,
        'permissions': resolver.permissions,
        'navItems': resolver.available_nav_items(),
    }


@access_bp.get('/check')
@jwt_required()
def check():
    """Evaluate ?page= and/or repeated ?action= against the caller's permissions."""
    resolver = current_resolver()
    out = {}
    page = request.args.get('page')
    if page is not None:
        out['page'] = {'page': page, 'allowed': resolver.can_access(page)}
    actions = request.args.getlist('action')
    if actions:
        out['actions'] = {a: resolver.can_perform(a) for a in actions}
    return out
