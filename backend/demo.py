"""Create demo template data for development/testing."""

import shutil

from betfunnels.models import CasinoRecord
from betfunnels.references import (
    REF_ATIVACAO_FTD,
    REF_ATIVACAO_STD,
    REF_REATIVACAO_SEM_DEPOSITO,
    REF_REATIVACAO_SEM_FTD,
    REF_REATIVACAO_SEM_LOGIN,
    REF_SAZONAL,
)
from betfunnels.storage import JsonTemplateStore

DEMO_MASTER_GUIDE = """\
Você escreve copy de CRM para cassinos online (e-mail, push e SMS).
- Frases curtas, verbo no imperativo, um CTA claro por bloco.
- Emojis com moderação, sempre no início das linhas de título.
- Preserve merge tags como {{state.user_first_name}} exatamente como estão.
- Nunca prometa ganhos garantidos."""

# Preamble line for each demo reference
DEMO_FUNNELS = {
    REF_ATIVACAO_FTD: "Funil de ativação para quem acabou de se cadastrar.",
    REF_ATIVACAO_STD: "Funil de ativação para segundo, terceiro e quarto depósito.",
    REF_REATIVACAO_SEM_FTD: "Reativação de cadastros que nunca ativaram a conta.",
    REF_REATIVACAO_SEM_DEPOSITO: "Reativação de jogadores sem depósito recente.",
    REF_REATIVACAO_SEM_LOGIN: "Reativação de jogadores que não fazem login há semanas.",
}

DEMO_DAY = """\
🔹 DIA {day}
Assunto: {{{{state.user_first_name}}}}, o dia {day} chegou 🎰
Pré-header: Uma oferta separada para você
Corpo: Jogue no Fortune Ox e ganhe 20 giros grátis.
Botão: JOGAR AGORA
Push: 🔥 Seus giros do dia {day} estão esperando
SMS: {{{{state.casino_name}}}}: giros liberados hoje. Acesse e jogue."""

DEMO_SEASONAL = """\
Tema: Black Friday
Assunto: 🖤 A Black chegou, {{state.user_first_name}}
Corpo: Jogue no Gates of Olympus e ganhe o dobro em giros até domingo.
Upsell: Quem jogar R$100 leva 50 giros extras.
Botão: QUERO MEUS GIROS"""


def demo_reference(intro: str, day_count: int = 6) -> str:
    """A reference template with a preamble and DIA 1..day_count."""
    days = "\n\n".join(DEMO_DAY.format(day=d) for d in range(1, day_count + 1))
    return f"{intro}\n\n{days}\n"


DEMO_CASINOS = [
    CasinoRecord(
        name="Ginga",
        tone="Descontraído, brasileiro, com gírias leves de futebol e samba.",
        instructions="Sempre cite o nome Ginga no assunto do DIA 1.",
        references={
            **{key: demo_reference(intro) for key, intro in DEMO_FUNNELS.items()},
            REF_SAZONAL: DEMO_SEASONAL,
        },
    ),
    CasinoRecord(
        name="Lótus Bet",
        tone="Elegante e direto, sem gírias.",
        references={
            REF_ATIVACAO_FTD: demo_reference(DEMO_FUNNELS[REF_ATIVACAO_FTD]),
            REF_ATIVACAO_STD: demo_reference(DEMO_FUNNELS[REF_ATIVACAO_STD]),
        },
    ),
]


def create_demo_data(store: JsonTemplateStore) -> None:
    """Wipe existing casinos and write the demo master guide and casinos."""
    casino_dir = store.casino_dir
    if casino_dir.exists():
        shutil.rmtree(casino_dir)
    casino_dir.mkdir(parents=True, exist_ok=True)

    store.save_master_guide(DEMO_MASTER_GUIDE)
    for casino in DEMO_CASINOS:
        store.save_casino(casino)
