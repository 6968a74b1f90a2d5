import uuid

from btcguess import db


def generate_player_id():
    return str(uuid.uuid4())


class Player(db.Model):
    __tablename__ = 'players'
    id = db.Column(db.String(36), primary_key=True, default=generate_player_id)
    score = db.Column(db.Integer, nullable=False, default=0)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=True)

    def to_dict(self):
        return {
            'id': self.id,
            'score': self.score,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
