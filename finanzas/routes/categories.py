# -*- coding: utf-8 -*-
"""
Category and subcategory routes (bearer).
"""
from flask import Blueprint, request

from finanzas.api.envelope import ApiError, success
from finanzas.api.params import json_body, validate_uuid
from finanzas.database.repositories import AdminRepository, OwnedRepository
from finanzas.database.seed import provision_default_categories
from finanzas.infra.auth import current_user_id, require_auth
from finanzas.services.structured_logging import get_logger
from finanzas.models import Category, Subcategory
from finanzas.schemas.categories import (
    CategoryCreate,
    CategoryUpdate,
    SubcategoryCreate,
    SubcategoryUpdate,
)
from finanzas.services.ledger import apply_changes

categories_bp = Blueprint('categories', __name__)
logger = get_logger(__name__)

CATEGORY_NOT_FOUND = 'Categoría no encontrada'
SUBCATEGORY_NOT_FOUND = 'Subcategoría no encontrada'
DUPLICATE_CATEGORY = 'Ya existe una categoría con ese nombre'
DUPLICATE_SUBCATEGORY = 'Ya existe una subcategoría con ese nombre en esta categoría'


def _repo():
    return OwnedRepository(current_user_id())


def _category_or_404(repo, category_id, field='id'):
    category = repo.get(Category, validate_uuid(category_id, field))
    if category is None:
        raise ApiError('NOT_FOUND', CATEGORY_NOT_FOUND)
    return category


def _subcategory_or_404(repo, subcategory_id):
    subcategory = repo.get(Subcategory, validate_uuid(subcategory_id))
    if subcategory is None:
        raise ApiError('NOT_FOUND', SUBCATEGORY_NOT_FOUND)
    return subcategory


# --- categories ---

@categories_bp.route('/categories', methods=['GET'])
@require_auth
def list_categories():
    """List the caller's categories. Never creates anything."""
    categories = _repo().query(Category).order_by(Category.type.asc(), Category.name.asc()).all()
    rows = [c.to_dict() for c in categories]
    return success({
        'categories': rows,
        'grouped': {
            'income': [c for c in rows if c['type'] == 'income'],
            'expense': [c for c in rows if c['type'] == 'expense'],
        },
        'hasCustomCategories': bool(rows),
    })


@categories_bp.route('/categories', methods=['POST'])
@require_auth
def create_category():
    data = CategoryCreate(**json_body())
    repo = _repo()
    if repo.find_category_by_name(data.name, data.type):
        raise ApiError('VALIDATION_ERROR', DUPLICATE_CATEGORY)

    category = repo.add(Category(**data.model_dump()))
    repo.commit()
    return success({'category': category.to_dict()}, 201)


@categories_bp.route('/categories/init', methods=['POST'])
@require_auth
def init_categories():
    """Provision the default categories. Safe to call more than once."""
    user_id = current_user_id()
    admin = AdminRepository()
    created = provision_default_categories(user_id, admin)
    admin.commit()

    categories = _repo().query(Category).order_by(Category.type.asc(), Category.name.asc()).all()
    if created:
        logger.info("Default categories provisioned", user_id=user_id, created=len(created))
        message = 'Categorías inicializadas correctamente'
    else:
        message = 'Ya tienes categorías configuradas'
    return success({
        'categories': [c.to_dict() for c in categories],
        'created': len(created),
        'message': message,
    }, 201 if created else 200)


@categories_bp.route('/categories/<category_id>', methods=['PUT'])
@require_auth
def update_category(category_id):
    repo = _repo()
    category = _category_or_404(repo, category_id)
    changes = CategoryUpdate(**json_body()).changes()
    if not changes:
        raise ApiError('VALIDATION_ERROR', 'No hay datos para actualizar')

    # Renames do not cascade to budget pockets or to transaction labels
    if 'name' in changes and repo.find_category_by_name(changes['name'], category.type, exclude_id=category.id):
        raise ApiError('VALIDATION_ERROR', DUPLICATE_CATEGORY)

    apply_changes(category, changes)
    repo.commit()
    return success({'category': category.to_dict()})


@categories_bp.route('/categories/<category_id>', methods=['DELETE'])
@require_auth
def delete_category(category_id):
    repo = _repo()
    category = _category_or_404(repo, category_id)

    count = repo.count_transactions_in_category(category.name)
    if count > 0:
        raise ApiError(
            'VALIDATION_ERROR',
            f'No se puede eliminar. Hay {count} transacciones usando esta categoría.')

    repo.delete(category)
    repo.commit()
    return success({'message': 'Categoría eliminada correctamente'})


# --- subcategories ---

@categories_bp.route('/subcategories', methods=['GET'])
@require_auth
def list_subcategories():
    repo = _repo()
    q = repo.query(Subcategory)
    category_id = request.args.get('category_id')
    if category_id:
        q = q.filter(Subcategory.category_id == validate_uuid(category_id, 'category_id'))
    return success({'subcategories': [s.to_dict() for s in q.order_by(Subcategory.name.asc()).all()]})


@categories_bp.route('/subcategories', methods=['POST'])
@require_auth
def create_subcategory():
    body = json_body()
    if not body.get('category_id') or not body.get('name'):
        raise ApiError('VALIDATION_ERROR', 'category_id y nombre son requeridos')
    data = SubcategoryCreate(**body)

    repo = _repo()
    category = _category_or_404(repo, data.category_id, 'category_id')
    if repo.find_subcategory_by_name(category.id, data.name):
        raise ApiError('VALIDATION_ERROR', DUPLICATE_SUBCATEGORY)

    subcategory = repo.add(Subcategory(**data.model_dump()))
    repo.commit()
    return success({'subcategory': subcategory.to_dict()}, 201)


@categories_bp.route('/subcategories/<subcategory_id>', methods=['PUT'])
@require_auth
def update_subcategory(subcategory_id):
    repo = _repo()
    subcategory = _subcategory_or_404(repo, subcategory_id)
    changes = SubcategoryUpdate(**json_body()).changes()
    if not changes:
        raise ApiError('VALIDATION_ERROR', 'No hay datos para actualizar')

    if 'name' in changes and repo.find_subcategory_by_name(
            subcategory.category_id, changes['name'], exclude_id=subcategory.id):
        raise ApiError('VALIDATION_ERROR', DUPLICATE_SUBCATEGORY)

    apply_changes(subcategory, changes)
    repo.commit()
    return success({'subcategory': subcategory.to_dict()})


@categories_bp.route('/subcategories/<subcategory_id>', methods=['DELETE'])
@require_auth
def delete_subcategory(subcategory_id):
    repo = _repo()
    subcategory = _subcategory_or_404(repo, subcategory_id)
    repo.delete(subcategory)
    repo.commit()
    return success({'message': 'Subcategoría eliminada correctamente'})
