from rumble import db


class SavedState(db.Model):
    """Serialized GameState, one row per storage key."""
    __tablename__ = 'saved_state'
    key = db.Column(db.String(128), primary_key=True)
    payload = db.Column(db.Text, nullable=False)
    updated_at = db.Column(db.Float, nullable=True)
