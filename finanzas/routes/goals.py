# -*- coding: utf-8 -*-
"""
Savings goal routes (bearer).
"""
from flask import Blueprint

from finanzas.api.envelope import ApiError, success
from finanzas.api.params import json_body, validate_uuid
from finanzas.database.repositories import OwnedRepository
from finanzas.infra.auth import current_user_id, require_auth
from finanzas.models import Goal
from finanzas.schemas.goals import GoalCreate, GoalUpdate
from finanzas.services.ledger import apply_changes

goals_bp = Blueprint('goals', __name__)

NOT_FOUND_MESSAGE = 'Meta no encontrada'


def _goal_or_404(repo, goal_id):
    goal = repo.get(Goal, validate_uuid(goal_id))
    if goal is None:
        raise ApiError('NOT_FOUND', NOT_FOUND_MESSAGE)
    return goal


@goals_bp.route('/goals', methods=['GET'])
@require_auth
def list_goals():
    repo = OwnedRepository(current_user_id())
    goals = repo.query(Goal).order_by(Goal.created_at.desc()).all()
    return success({'goals': [g.to_dict() for g in goals]})


@goals_bp.route('/goals/<goal_id>', methods=['GET'])
@require_auth
def get_goal(goal_id):
    goal = _goal_or_404(OwnedRepository(current_user_id()), goal_id)
    return success({'goal': goal.to_dict()})


@goals_bp.route('/goals', methods=['POST'])
@require_auth
def create_goal():
    body = json_body()
    if not body.get('name') or body.get('target') in (None, ''):
        raise ApiError('VALIDATION_ERROR', 'Nombre y objetivo son requeridos')
    data = GoalCreate(**body)

    repo = OwnedRepository(current_user_id())
    goal = repo.add(Goal(**data.model_dump()))
    repo.commit()
    return success({'goal': goal.to_dict()}, 201)


@goals_bp.route('/goals/<goal_id>', methods=['PUT'])
@require_auth
def update_goal(goal_id):
    repo = OwnedRepository(current_user_id())
    goal = _goal_or_404(repo, goal_id)
    changes = GoalUpdate(**json_body()).changes()
    if not changes:
        raise ApiError('VALIDATION_ERROR', 'No hay datos para actualizar')

    apply_changes(goal, changes)
    repo.commit()
    return success({'goal': goal.to_dict()})


@goals_bp.route('/goals/<goal_id>', methods=['DELETE'])
@require_auth
def delete_goal(goal_id):
    repo = OwnedRepository(current_user_id())
    goal = _goal_or_404(repo, goal_id)
    repo.delete(goal)
    repo.commit()
    return success({'message': 'Meta eliminada'})
