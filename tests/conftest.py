"""
Test fixtures shared across all SOPGate tests.
"""

import pytest

from sopgate.core.catalog import build_default_catalog
from sopgate.core.rule_engine import RuleEngine
from sopgate.core.runner import ValidationRunner


@pytest.fixture
def catalog():
    return build_default_catalog()


@pytest.fixture
def engine(catalog):
    return RuleEngine(catalog)


@pytest.fixture
def runner(engine):
    return ValidationRunner(engine)


@pytest.fixture
def service_with_violations():
    """NestJS service with a generic Error, console logging, and an unfiltered read."""
    return """import { Injectable, Logger } from '@nestjs/common';

@Injectable()
export class UsersService {
  private readonly logger = new Logger(UsersService.name);

  async findOne(id: string) {
    const user = await this.prisma.users.findUnique({ where: { id } });
    if (!user) {
      throw new Error('User not found');
    }
    console.log('found user');
    return user;
  }
}
"""


@pytest.fixture
def clean_service():
    """Service that passes every SOP category."""
    return """import { Injectable, Logger, NotFoundException } from '@nestjs/common';

@Injectable()
export class HealthService {
  private readonly logger = new Logger(HealthService.name);

  ping(): string {
    return 'pong';
  }
}
"""
