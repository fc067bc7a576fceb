"""
Deploy TokenAllocation

Constructor arguments, in order:
  ICO_MANAGER_ADDRESS      backend key that mints tokens
  FOUNDERS_WALLET_ADDRESS  receives the founders' tokens after vesting
  PARTNERS_WALLET_ADDRESS  allocates the early contributors' bonus
  TOTAL_WEI_GATHERED       total wei gathered throughout the crowdsale

Unset addresses stay at the "0x0" placeholder and the total at 0.
"""

from utils.config import TokenAllocationParams


def migrate(deployer, params=None):
    params = params or TokenAllocationParams.from_env()
    token_allocation = deployer.artifacts.require("./TokenAllocation.sol")
    return deployer.deploy(token_allocation, *params.as_constructor_args())
