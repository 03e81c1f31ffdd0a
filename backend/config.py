import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///rumble.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Durable store key and broadcast channel shared by every window
    RUMBLE_STORAGE_KEY = os.environ.get('RUMBLE_STORAGE_KEY', 'royal-rumble-state')
    RUMBLE_CHANNEL = os.environ.get('RUMBLE_CHANNEL', 'rumble_sync')
    # Undo depth and log retention
    RUMBLE_MAX_HISTORY = int(os.environ.get('RUMBLE_MAX_HISTORY', '20'))
    RUMBLE_MAX_LOGS = int(os.environ.get('RUMBLE_MAX_LOGS', '50'))
