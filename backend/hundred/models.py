from hundred import db
import json
import time


class RoomSnapshot(db.Model):
    __tablename__ = 'room_snapshot'
    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(6), unique=True, nullable=False, index=True)
    payload = db.Column(db.Text, nullable=False)  # JSON-encoded Room.to_dict()
    updated_at = db.Column(db.Float, nullable=False, default=time.time)

    def set_payload(self, payload):
        self.payload = payload
        self.updated_at = time.time()

    def to_dict(self):
        """Decoded room snapshot, without the storage id."""
        data = json.loads(self.payload)
        data['code'] = self.code
        return data
