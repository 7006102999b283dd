from . import models, schemas


def template_to_read(template: models.ScoreTemplate) -> schemas.ScoreTemplateRead:
    return schemas.ScoreTemplateRead(
        id=template.id,
        game_id=template.game_id,
        name=template.name,
        fields=[schemas.TemplateField(**field) for field in template.fields or []],
    )


def game_to_read(game: models.Game, session_count: int = 0) -> schemas.GameRead:
    return schemas.GameRead(id=game.id, name=game.name, session_count=session_count)


def game_to_detail(game: models.Game) -> schemas.GameDetail:
    return schemas.GameDetail(
        id=game.id,
        name=game.name,
        templates=[template_to_read(template) for template in sorted(game.templates, key=lambda item: item.id)],
    )


def member_to_read(member: models.GroupMember) -> schemas.GroupMemberRead:
    return schemas.GroupMemberRead(
        user_id=member.user_id,
        name=member.user.name if member.user else "Unknown",
        email=member.user.email if member.user else None,
        is_guest=member.user.is_guest if member.user else False,
        role=member.role,
    )


def session_to_read(session: models.GameSession) -> schemas.SessionRead:
    # Best placement first; ties keep the order they were recorded in.
    players = sorted(session.players, key=lambda player: (player.placement, player.id))

    return schemas.SessionRead(
        id=session.id,
        game_id=session.game_id,
        game_name=session.game.name if session.game else "Unknown",
        group_id=session.group_id,
        template_id=session.template_id,
        played_at=session.played_at,
        players=[
            schemas.SessionPlayerRead(
                user_id=player.user_id,
                user_name=player.user.name if player.user else "Unknown",
                raw_score=player.raw_score,
                placement=player.placement,
                points_awarded=player.points_awarded,
                score_details=player.score_details,
            )
            for player in players
        ],
    )
