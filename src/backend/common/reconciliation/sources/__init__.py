from .user_expense import USER_EXPENSE
from .commission import COMMISSION_EXPENSE
from .loaders_fee import LOADERS_FEE_EXPENSE
from .land_rate_fee import LAND_RATE_FEE_EXPENSE
