from flask import Blueprint, jsonify
from oche.services.match.modes import GAME_MODES

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the Oche darts server!'})

@main.route('/health')
def health_check():
    return jsonify({'status': 'ok'})

@main.route('/modes')
def list_modes():
    """Available game modes and the ruleset each one starts with."""
    return jsonify([{'mode': key, **config} for key, config in GAME_MODES.items()])
