"""
Orders API Endpoints
Checkout, Razorpay payment verification, order history, cancellation,
admin status updates and Shipmozo tracking

Author: Water Junction
Date: 2025-06-16
"""
import math
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, ConfigDict, Field, EmailStr

from waterjunction.core.auth import get_current_user, require_admin
from waterjunction.core.exceptions import ServiceError
from waterjunction.domain.user import User
from waterjunction.services.order_service import OrderService


router = APIRouter()


# Request models
class ShippingAddressInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=6)
    email: Optional[EmailStr] = None
    address_line1: str = Field(..., alias="addressLine1", min_length=1)
    address_line2: Optional[str] = Field(None, alias="addressLine2")
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    pincode: str = Field(..., min_length=4, max_length=10)
    country: str = "India"


class OrderCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    shipping_address: ShippingAddressInput = Field(..., alias="shippingAddress")
    payment_method: Literal["razorpay"] = Field("razorpay", alias="paymentMethod")
    customer_notes: Optional[str] = Field(None, alias="customerNotes", max_length=500)


class PaymentVerification(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    razorpay_order_id: str
    razorpay_payment_id: str
    razorpay_signature: str
    order_id: int = Field(..., alias="orderId")


class OrderCancel(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class OrderStatusUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: str
    tracking_number: Optional[str] = Field(None, alias="trackingNumber")


def _tracking_info(order) -> dict:
    return {
        "awb": order.shipment_awb,
        "courier_name": order.courier_name,
        "tracking_url": order.tracking_url,
        "status": order.shipment_status,
    }


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_order(request: OrderCreate, user: User = Depends(get_current_user)):
    """
    Place an order from the cart and open a Razorpay order for it

    The browser completes payment with `razorpayOrder` and then calls
    /verify-payment.
    """
    try:
        order, razorpay_order = await OrderService().place_order(
            user,
            request.shipping_address.model_dump(),
            request.payment_method,
            request.customer_notes
        )
        return {"success": True, "order": order.to_dict(), "razorpayOrder": razorpay_order}

    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error creating order: {str(e)}")


@router.post("/verify-payment")
async def verify_payment(request: PaymentVerification, user: User = Depends(get_current_user)):
    try:
        order = await OrderService().verify_payment(
            user,
            request.order_id,
            request.razorpay_order_id,
            request.razorpay_payment_id,
            request.razorpay_signature
        )
        return {"success": True, "message": "Payment verified successfully", "order": order.to_dict()}

    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error verifying payment: {str(e)}")


@router.get("/admin/all")
async def get_all_orders(
    status_filter: Optional[str] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    admin: User = Depends(require_admin)
):
    try:
        orders, total = OrderService().list_all(status=status_filter, page=page, limit=limit)
        return {
            "success": True,
            "orders": [order.to_dict() for order in orders],
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "pages": math.ceil(total / limit) if total else 0,
            }
        }

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching orders: {str(e)}")


@router.get("/")
async def get_my_orders(user: User = Depends(get_current_user)):
    try:
        orders = OrderService().list_for_user(user)
        return {"success": True, "orders": [order.to_dict() for order in orders]}

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching orders: {str(e)}")


@router.get("/{order_id}")
async def get_order(order_id: int, user: User = Depends(get_current_user)):
    try:
        order = OrderService().get_order(user, order_id)
        return {"success": True, "order": order.to_dict()}

    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching order: {str(e)}")


@router.put("/{order_id}/cancel")
async def cancel_order(order_id: int, request: Optional[OrderCancel] = None, user: User = Depends(get_current_user)):
    try:
        reason = request.reason if request else None
        order = OrderService().cancel(user, order_id, reason)
        return {"success": True, "message": "Order cancelled successfully", "order": order.to_dict()}

    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error cancelling order: {str(e)}")


@router.put("/{order_id}/status")
async def update_order_status(order_id: int, request: OrderStatusUpdate, admin: User = Depends(require_admin)):
    try:
        order = OrderService().update_status(order_id, request.status, request.tracking_number)
        return {"success": True, "order": order.to_dict()}

    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating order status: {str(e)}")


@router.get("/{order_id}/track")
async def track_order(order_id: int, user: User = Depends(get_current_user)):
    """
    Live tracking from Shipmozo

    A provider failure still answers 200 with success false and the
    tracking details stored on the order.
    """
    try:
        order, result = await OrderService().track(user, order_id)

        if not result.success:
            return {
                "success": False,
                "message": result.error or "Failed to fetch tracking information",
                "tracking": _tracking_info(order),
            }

        tracking = _tracking_info(order)
        tracking.update({
            "status": result.status,
            "courier_name": result.courier_name or order.courier_name,
            "events": result.events,
            "estimated_delivery": result.estimated_delivery,
            "current_location": result.current_location,
        })
        return {"success": True, "tracking": tracking, "order": order.to_dict()}

    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error tracking order: {str(e)}")


@router.post("/{order_id}/create-shipment")
async def create_shipment(order_id: int, admin: User = Depends(require_admin)):
    """Retry shipment creation for a paid order left with shipping_pending"""
    try:
        order = await OrderService().create_shipment(order_id)
        return {"success": True, "message": "Shipment created successfully", "order": order.to_dict()}

    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error creating shipment: {str(e)}")
