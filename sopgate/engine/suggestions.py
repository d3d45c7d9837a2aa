"""
Remediation Suggestions — Code examples for rules that still need a human.
"""

from __future__ import annotations

import textwrap
from typing import Sequence

from sopgate.models.correction_models import Suggestion
from sopgate.models.rule_models import RuleViolation

CODE_EXAMPLES: dict[str, str] = {
    "INV-ERROR-TYPE": textwrap.dedent(
        """\
        // Before
        throw new Error('User not found');

        // After
        throw new NotFoundException('User not found');
        """
    ),
    "INV-PRISMA-SOFT-DELETE": textwrap.dedent(
        """\
        // Before
        await this.prisma.teams.findMany({ where: { organization_id: orgId } });

        // After
        await this.prisma.teams.findMany({
          where: { organization_id: orgId, deleted_at: null },
        });
        """
    ),
    "INV-PRISMA-ORDERBY": textwrap.dedent(
        """\
        await this.prisma.rubrics.findMany({
          where: { organization_id: orgId },
          orderBy: { created_at: 'desc' },
        });
        """
    ),
    "INV-PRISMA-TRANSACTION": textwrap.dedent(
        """\
        await this.prisma.$transaction(async (tx) => {
          const user = await tx.users.create({ data: userData });
          await tx.organization_users.create({ data: { user_id: user.id, organization_id: orgId } });
        });
        """
    ),
    "INV-API-GUARD": textwrap.dedent(
        """\
        @Post()
        @UseGuards(JwtAuthGuard, RolesGuard)
        async create(@Body() dto: CreateDto) { ... }
        """
    ),
    "INV-PRISMA-N+1": textwrap.dedent(
        """\
        // Before
        for (const team of teams) {
          const members = await this.prisma.team_members.findMany({ where: { team_id: team.id } });
        }

        // After
        const members = await this.prisma.team_members.findMany({
          where: { team_id: { in: teams.map((t) => t.id) } },
        });
        """
    ),
}


def generate_suggestions(violations: Sequence[RuleViolation]) -> list[Suggestion]:
    """One suggestion per distinct rule, in order of first violation."""
    suggestions: list[Suggestion] = []
    seen: set[str] = set()
    for v in violations:
        if v.rule_id in seen:
            continue
        seen.add(v.rule_id)
        suggestions.append(
            Suggestion(
                rule_id=v.rule_id,
                message=v.fix or v.message,
                code_example=CODE_EXAMPLES.get(v.rule_id),
            )
        )
    return suggestions
