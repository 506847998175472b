"""
app/content/models.py
---------------------
Marketing content shown on proposal pages: client testimonials and
portfolio pieces. Both are ordered by display_order and can be hidden
without deleting via is_active.
"""
from datetime import datetime
from app import db


class Testimonial(db.Model):
    __tablename__ = 'testimonials'

    id            = db.Column(db.Integer, primary_key=True)
    name          = db.Column(db.String(120), nullable=False)
    role          = db.Column(db.String(120), nullable=True)
    company       = db.Column(db.String(200), nullable=True)
    quote         = db.Column(db.Text,        nullable=False)
    rating        = db.Column(db.Integer,     nullable=False, default=5)   # 1–5 stars
    image_url     = db.Column(db.String(500), nullable=True)
    display_order = db.Column(db.Integer,     nullable=False, default=0)
    is_active     = db.Column(db.Boolean,     nullable=False, default=True)
    created_at    = db.Column(db.DateTime,    nullable=False, default=datetime.utcnow)

    __table_args__ = (
        db.CheckConstraint('rating >= 1 AND rating <= 5', name='check_rating_range'),
    )

    def to_dict(self) -> dict:
        return {
            'id':            self.id,
            'name':          self.name,
            'role':          self.role,
            'company':       self.company,
            'quote':         self.quote,
            'rating':        self.rating,
            'image_url':     self.image_url,
            'display_order': self.display_order,
            'is_active':     self.is_active,
        }

    def __repr__(self):
        return f'<Testimonial {self.name!r} {self.rating}★>'


class PortfolioItem(db.Model):
    __tablename__ = 'portfolio_items'

    id            = db.Column(db.Integer, primary_key=True)
    name          = db.Column(db.String(200), nullable=False)
    description   = db.Column(db.Text,        nullable=True)
    image_url     = db.Column(db.String(500), nullable=True)
    url           = db.Column(db.String(500), nullable=True)
    category      = db.Column(db.String(100), nullable=True)
    display_order = db.Column(db.Integer,     nullable=False, default=0)
    is_active     = db.Column(db.Boolean,     nullable=False, default=True)
    created_at    = db.Column(db.DateTime,    nullable=False, default=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            'id':            self.id,
            'name':          self.name,
            'description':   self.description,
            'image_url':     self.image_url,
            'url':           self.url,
            'category':      self.category,
            'display_order': self.display_order,
            'is_active':     self.is_active,
        }

    def __repr__(self):
        return f'<PortfolioItem {self.name!r}>'
