class PaymentError(Exception):
    status_code = 500
    default_message = "Payment processing error"

    def __init__(self, message=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class UnknownGateway(PaymentError):
    status_code = 400
    default_message = "Unknown payment gateway"


class SignatureInvalid(PaymentError):
    status_code = 401
    default_message = "Invalid signature"


class PaymentNotFound(PaymentError):
    status_code = 404
    default_message = "Payment not found"
