from fastapi import HTTPException, status
from loguru import logger
from sqlalchemy import func
from sqlalchemy.orm import Session

from souqote.quotes.models import Quote
from souqote.reviews import models, schemas
from souqote.rfqs.service import get_rfq_or_404
from souqote.users import crud as user_crud
from souqote.users.auth import require_profile
from souqote.utils.formatting import render_stars


def serialize_review(review: models.Review) -> schemas.ReviewOut:
    out = schemas.ReviewOut.model_validate(review)
    out.stars = render_stars(review.rating)
    return out


def recompute_rating(db: Session, user_id: int) -> float:
    average = (
        db.query(func.avg(models.Review.rating))
        .filter(models.Review.reviewee_id == user_id)
        .scalar()
    )
    return round(float(average or 0), 2)


def create_review(db: Session, current_user, review_data: schemas.ReviewCreate):
    reviewer = require_profile(db, current_user)
    rfq = get_rfq_or_404(db, review_data.rfq_id)

    if rfq.status != "awarded" or not rfq.awarded_quote_id:
        raise HTTPException(status_code=400, detail="Reviews are only possible once an RFQ is awarded")

    winning_quote = db.query(Quote).filter(Quote.id == rfq.awarded_quote_id).first()
    if not winning_quote:
        raise HTTPException(status_code=400, detail="The awarded quote no longer exists")

    # Buyer reviews the winning vendor, or the vendor reviews the buyer
    parties = {rfq.buyer_id, winning_quote.vendor_id}
    if reviewer.id not in parties or review_data.reviewee_id not in parties \
            or reviewer.id == review_data.reviewee_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the buyer and the awarded vendor can review each other"
        )

    existing = db.query(models.Review).filter(
        models.Review.rfq_id == rfq.id,
        models.Review.reviewer_id == reviewer.id,
    ).first()
    if existing:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="You have already reviewed this RFQ"
        )

    review = models.Review(
        rfq_id=rfq.id,
        reviewer_id=reviewer.id,
        reviewee_id=review_data.reviewee_id,
        rating=review_data.rating,
        comment=(review_data.comment or "").strip() or None,
    )
    db.add(review)
    db.flush()

    reviewee = user_crud.get_user(db, review_data.reviewee_id)
    reviewee.rating = recompute_rating(db, reviewee.id)
    db.commit()
    db.refresh(review)
    logger.info(f"⭐ Review {review.id}: user {reviewer.id} rated user {reviewee.id} {review.rating}/5")
    return serialize_review(review)


def list_user_reviews(db: Session, user_id: int):
    if not user_crud.get_user(db, user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    reviews = (
        db.query(models.Review)
        .filter(models.Review.reviewee_id == user_id)
        .order_by(models.Review.created_at.desc(), models.Review.id.desc())
        .all()
    )
    return [serialize_review(r) for r in reviews]
