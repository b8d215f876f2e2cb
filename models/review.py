# models/review.py

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Text, JSON
from sqlalchemy.orm import relationship
from db.extensions import db
from datetime import datetime


class Review(db.Model):
    __tablename__ = 'reviews'

    STATUS_PUBLISHED = 'published'
    STATUS_HIDDEN = 'hidden'
    STATUS_FLAGGED = 'flagged'

    id = Column(Integer, primary_key=True)
    review_id = Column(String(64), unique=True, nullable=False, index=True)
    ground_id = Column(String(64), ForeignKey('grounds.ground_id'), nullable=False, index=True)
    user_id = Column(String(128), ForeignKey('users.id'), nullable=False, index=True)

    rating = Column(Integer, nullable=False)
    # e.g. {"cleanliness": 4, "facilities": 5}
    category_ratings = Column(JSON, nullable=False, default=dict)
    title = Column(String(100), nullable=True)
    content = Column(Text, nullable=False)

    status = Column(String(20), nullable=False, default=STATUS_PUBLISHED, index=True)
    is_moderated = Column(Boolean, nullable=False, default=False)
    moderated_at = Column(DateTime, nullable=True)
    moderated_by = Column(String(128), nullable=True)
    moderation_reason = Column(String(500), nullable=True)

    helpful_count = Column(Integer, nullable=False, default=0)
    helpful_users = Column(JSON, nullable=False, default=list)

    report_count = Column(Integer, nullable=False, default=0)
    reported_by = Column(JSON, nullable=False, default=list)
    report_reasons = Column(JSON, nullable=False, default=list)

    owner_reply = Column(JSON, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship('User', lazy='joined')
    ground = relationship('Ground')

    def __repr__(self):
        return f"<Review review_id={self.review_id} ground_id={self.ground_id} rating={self.rating}>"

    # JSON columns are reassigned, not mutated, so SQLAlchemy sees the change

    def toggle_helpful(self, user_id):
        users = list(self.helpful_users or [])
        if user_id in users:
            users.remove(user_id)
            marked = False
        else:
            users.append(user_id)
            marked = True
        self.helpful_users = users
        self.helpful_count = len(users)
        return marked

    def add_report(self, user_id, reason):
        reporters = list(self.reported_by or [])
        if user_id in reporters:
            return False
        reporters.append(user_id)
        self.reported_by = reporters
        self.report_count = len(reporters)
        reasons = list(self.report_reasons or [])
        if reason and reason not in reasons:
            reasons.append(reason)
            self.report_reasons = reasons
        return True

    def set_owner_reply(self, content, is_public=True):
        self.owner_reply = {
            'content': content,
            'repliedAt': datetime.utcnow().isoformat(),
            'isPublic': is_public,
        }

    def to_dict(self, viewer_id=None):
        age = (datetime.utcnow() - self.created_at).days if self.created_at else 0
        data = {
            'reviewId': self.review_id,
            'groundId': self.ground_id,
            'userId': self.user_id,
            'rating': self.rating,
            'categoryRatings': self.category_ratings or {},
            'title': self.title,
            'content': self.content,
            'status': self.status,
            'isModerated': self.is_moderated,
            'helpfulCount': self.helpful_count or 0,
            'reportCount': self.report_count or 0,
            'ownerReply': self.owner_reply,
            'ageInDays': age,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'updatedAt': self.updated_at.isoformat() if self.updated_at else None,
        }
        if self.user:
            data['user'] = self.user.to_public_dict()
        if viewer_id:
            data['isHelpfulByMe'] = viewer_id in (self.helpful_users or [])
        return data
