"""
Catalogo statico dei servizi e tabella delle opzioni di pagamento
Progetto: ConexHub CRM (Gestionale Proposte)
"""

from decimal import Decimal
from typing import Iterable, Optional

from crm.schemas.catalog import BillingType, PaymentOptionRead, ServiceItem


def _service(
    id: str,
    name: str,
    description: str,
    base_price: str,
    category: str,
    icon: str,
    features: list[str],
    billing_type: BillingType = BillingType.ONE_TIME,
    popular: bool = False,
) -> ServiceItem:
    return ServiceItem(
        id=id,
        name=name,
        description=description,
        base_price=Decimal(base_price),
        category=category,
        icon=icon,
        features=features,
        billing_type=billing_type,
        popular=popular,
    )


# ------------------------------------------------------------
# Catalogo statico
# ------------------------------------------------------------
STATIC_SERVICES: tuple[ServiceItem, ...] = (
    _service(
        "website", "Site Institucional",
        "Site profissional responsivo com design estratégico, otimização para mecanismos de busca "
        "e formulários inteligentes para conversão de leads",
        "2500", "Web Design", "🌐",
        ["Design responsivo profissional", "SEO técnico otimizado",
         "Formulários de contato inteligentes", "Integração Google Analytics e Search Console"],
    ),
    _service(
        "photo-ai-basic", "Fotografia Básica",
        "Ideal para quem busca fotos simples e funcionais",
        "229", "Fotografia", "📸",
        ["5 fotos geradas por IA", "1 mini vídeo de até 5s",
         "Ajustes básicos de edição e refinamento",
         "Fotos editadas com dimensões horizontais e verticais", "Entrega em até 5 dias úteis"],
    ),
    _service(
        "photo-ai-pro", "Fotografia Profissional",
        "Ideal para destacar sua imagem em sites e redes sociais",
        "389", "Fotografia", "📸",
        ["10 fotos geradas por IA", "2 mini vídeos de até 5s",
         "Ajustes básicos de edição e refinamento",
         "Fotos editadas com dimensões horizontais e verticais", "Entrega em até 5 dias úteis"],
    ),
    _service(
        "photo-ai-premium", "Fotografia Premium",
        "Ideal para máxima qualidade e personalização total",
        "539", "Fotografia", "📸",
        ["15 fotos geradas por IA", "4 mini vídeos de até 5s",
         "Ajustes básicos de edição e refinamento",
         "Fotos editadas com dimensões horizontais e verticais", "Entrega em até 5 dias úteis"],
    ),
    # Prezzo unitario per foto
    _service(
        "product-photography", "Fotografia de Produto",
        "Fotografias reais de produtos para uso comercial",
        "20", "Fotografia", "📷",
        ["Fotos reais com tratamento básico de cor e luz",
         "Fundo branco ou cenário personalizado", "Entrega em até 7 dias úteis"],
    ),
    _service(
        "ecommerce", "Loja Virtual",
        "E-commerce completo com arquitetura robusta, sistema de pagamento seguro e painel "
        "administrativo avançado para gestão total da operação",
        "4500", "Web Design", "🛒",
        ["Catálogo de produtos com filtros avançados", "Carrinho de compras otimizado",
         "Gateway de pagamento seguro", "Painel administrativo completo"],
        popular=True,
    ),
    _service(
        "catalog", "Site Catálogo",
        "Vitrine digital estratégica com foco em apresentação profissional de produtos e serviços, "
        "integração WhatsApp Business e otimização mobile-first",
        "2500", "Web Design", "📱",
        ["Galeria de produtos profissional", "Sistema de filtros inteligentes",
         "WhatsApp Business integrado", "Design mobile-first responsivo"],
    ),
    _service(
        "landing-page", "Landing Page",
        "Página de conversão personalizada com design estratégico focado em conversão de leads, "
        "formulários otimizados, integração com CRM e possibilidade de A/B Testing",
        "1800", "Web Design", "🎯",
        ["Design estratégico focado em conversão", "Formulários otimizados para leads",
         "Integração com CRM avançada", "Sistema de A/B Testing"],
    ),
    _service(
        "website-blog", "Site com Blog",
        "Site profissional com sistema de blog integrado, painel de administração completo e "
        "estratégia de conteúdo para autoridade digital",
        "2800", "Web Design", "📝",
        ["Sistema de blog profissional", "Painel de administração avançado",
         "SEO técnico otimizado", "Sistema de comentários moderados"],
    ),
    _service(
        "design-start", "ID Visual Start",
        "Design de logo simples e diretrizes básicas para iniciar sua marca.",
        "350", "Design", "✨",
        ["Design de logo simples (tipográfico ou símbolo básico)",
         "Paleta de cores principal (3 a 5 cores)", "Tipografia recomendada (1–2 fontes)",
         "Diretrizes básicas de marca (PDF simples)", "1 rodada de revisão",
         "Tempo de entrega: 5 dias úteis"],
    ),
    _service(
        "design-pro", "ID Visual Pro",
        "Design de logo profissional com paleta de cores completa e diretrizes detalhadas.",
        "750", "Design", "🎨",
        ["Design de logo profissional (com alternativas de conceito)",
         "Paleta de cores completa (primárias, secundárias, de apoio)",
         "Sistema de tipografia e hierarquia", "Diretrizes detalhadas de marca (PDF)",
         "Mockups (cartão de visita, post para redes sociais, etc.)", "2 rodadas de revisão",
         "Tempo de entrega: 10 dias úteis"],
        popular=True,
    ),
    _service(
        "design-complete-branding", "Branding Completo",
        "Pesquisa de marca, plataforma de marca e sistema visual completo para um branding robusto.",
        "3500", "Design", "💎",
        ["Pesquisa e posicionamento de marca",
         "Plataforma de marca (missão, visão, valores, persona, tom de voz)",
         "Design de logo exclusivo (estudos e variações)",
         "Sistema visual completo (cores, tipografia, ícones, elementos gráficos, texturas)",
         "Manual de marca completo e interativo (PDF + editável)",
         "Kit de aplicações (cartões, papelaria, redes sociais, apresentações, etc.)",
         "3 rodadas de revisão estratégica", "Tempo de entrega: 20 a 40 dias úteis"],
    ),
    _service(
        "social-media", "Social Media",
        "Gestão de redes sociais com criação de conteúdo e agendamento de posts.",
        "1000", "Design", "📱",
        ["2 posts por semana + 1 stories", "Gestão de redes sociais (agendamentos de posts)",
         "Criação de destaques"],
        billing_type=BillingType.MONTHLY,
    ),
    _service(
        "google-ads", "Google Ads",
        "Campanhas Google Ads estratégicas com setup profissional, otimização contínua de "
        "performance e relatórios detalhados de resultados",
        "1200", "Tráfego Pago", "🔍",
        ["Setup profissional de campanhas", "Otimização contínua de performance",
         "Relatórios mensais detalhados", "Pesquisa de palavras-chave estratégicas"],
        billing_type=BillingType.MONTHLY,
    ),
    _service(
        "facebook-ads", "Facebook/Instagram Ads",
        "Campanhas Meta Ads com estratégia de segmentação avançada, criação de anúncios "
        "profissionais e otimização de budget para máximo ROI",
        "1500", "Tráfego Pago", "📱",
        ["Criação de anúncios profissionais", "Segmentação de público avançada",
         "Testes A/B de performance", "Gestão estratégica de orçamento"],
        billing_type=BillingType.MONTHLY,
        popular=True,
    ),
    _service(
        "dual-traffic", "Tráfego Pago Duplo",
        "Estratégia integrada Google Ads + Meta Ads com otimização cruzada, relatórios unificados "
        "e maximização de resultados em ambas plataformas",
        "1800", "Tráfego Pago", "🚀",
        ["Campanhas Google Ads + Meta Ads", "Estratégia integrada multiplataforma",
         "Relatórios unificados de performance", "Otimização cruzada de resultados"],
        billing_type=BillingType.MONTHLY,
    ),
    _service(
        "crm-kommo", "Implementação de CRM (Kommo)",
        "Sistema de gestão de relacionamento Kommo",
        "2000", "Inteligência Comercial", "⚙️",
        ["Configuração completa", "Treinamento da equipe", "Automações de vendas",
         "Integração WhatsApp"],
    ),
    _service(
        "crm-bitrix24", "Implementação de CRM (Bitrix24)",
        "Sistema completo Bitrix24 com todas as funcionalidades",
        "5000", "Inteligência Comercial", "🔧",
        ["Setup completo Bitrix24", "Treinamento avançado", "Automações complexas",
         "Integração total"],
    ),
    _service(
        "ai-assistant", "Assistente de IA",
        "Soluções de inteligência artificial para otimizar processos e interações.",
        "1500", "IA & Automação", "🤖",
        ["Chatbots inteligentes", "Análise preditiva", "Automação de conteúdo",
         "Personalização de ofertas"],
        billing_type=BillingType.MONTHLY,
    ),
    _service(
        "chatbot-leadster", "Chatbot Leadster",
        "Implementação e configuração de chatbot Leadster para captura e qualificação de leads.",
        "1000", "IA & Automação", "💬",
        ["Configuração inicial do chatbot", "Fluxos de conversa para qualificação de leads",
         "Integração com site", "Relatórios de performance"],
    ),
    _service(
        "local-seo", "SEO Local",
        "Otimização para negócios locais",
        "650", "Outros Serviços", "📍",
        ["Google Meu Negócio", "Otimização local", "Gestão de reviews", "Presença online local"],
        billing_type=BillingType.MONTHLY,
    ),
    _service(
        "international", "Consultoria Internacional",
        "Estratégias para empresas no exterior",
        "2000", "Consultoria", "🌍",
        ["Análise de mercado", "Estratégia de entrada", "Localização de conteúdo",
         "Compliance local"],
    ),
    # Prezzo orario
    _service(
        "ecommerce-consulting", "Consultoria de Uso de Loja Virtual",
        "Suporte e orientação especializada para otimizar o uso e a performance da sua loja "
        "virtual após a implementação.",
        "250", "Consultoria", "💡",
        ["Análise de performance da loja", "Otimização de processos de venda",
         "Treinamento de equipe", "Estratégias de retenção de clientes"],
    ),
    _service(
        "payment-gateway-install", "Instalação de Gateway de Pagamento",
        "Configuração e integração de gateways de pagamento seguros para sua loja virtual.",
        "500", "Outros Serviços", "💳",
        ["Integração com plataformas de e-commerce", "Configuração de métodos de pagamento",
         "Testes de transação"],
    ),
    _service(
        "shipping-system-install", "Instalação de Novo Sistema de Frete",
        "Implementação e configuração de sistemas de cálculo e gestão de frete para otimizar "
        "suas entregas.",
        "500", "Outros Serviços", "🚚",
        ["Integração com transportadoras", "Configuração de tabelas de frete",
         "Otimização de custos de envio"],
    ),
)


# ------------------------------------------------------------
# Opzioni di pagamento (tabella fissa)
# ------------------------------------------------------------
PAYMENT_OPTIONS: tuple[PaymentOptionRead, ...] = (
    PaymentOptionRead(id="pix", name="PIX à Vista", fee=Decimal("5.00"), installments=1),
    PaymentOptionRead(id="credit-cash", name="Crédito à Vista", fee=Decimal("4.20"), installments=1),
    PaymentOptionRead(id="credit-2x", name="2x no Cartão", fee=Decimal("6.09"), installments=2),
    PaymentOptionRead(id="credit-3x", name="3x no Cartão", fee=Decimal("7.01"), installments=3),
    PaymentOptionRead(id="credit-4x", name="4x no Cartão", fee=Decimal("7.91"), installments=4),
    PaymentOptionRead(id="credit-5x", name="5x no Cartão", fee=Decimal("8.80"), installments=5),
    PaymentOptionRead(id="credit-6x", name="6x no Cartão", fee=Decimal("9.67"), installments=6),
    PaymentOptionRead(id="credit-7x", name="7x no Cartão", fee=Decimal("12.59"), installments=7),
    PaymentOptionRead(id="credit-8x", name="8x no Cartão", fee=Decimal("13.42"), installments=8),
    PaymentOptionRead(id="credit-9x", name="9x no Cartão", fee=Decimal("14.25"), installments=9),
    PaymentOptionRead(id="credit-10x", name="10x no Cartão", fee=Decimal("15.06"), installments=10),
    PaymentOptionRead(id="credit-11x", name="11x no Cartão", fee=Decimal("15.87"), installments=11),
    PaymentOptionRead(id="credit-12x", name="12x no Cartão", fee=Decimal("16.66"), installments=12),
)


def custom_service_to_item(custom_service) -> ServiceItem:
    """Converte un servizio personalizzato (ORM o schema) in voce di catalogo."""
    return ServiceItem(
        id=str(custom_service.id),
        name=custom_service.name,
        description=custom_service.description or "",
        base_price=custom_service.base_price,
        category=custom_service.category,
        icon=custom_service.icon,
        features=list(custom_service.features or []),
        popular=bool(custom_service.popular),
        billing_type=custom_service.billing_type,
        is_custom=True,
    )


def get_available_services(custom_services: Optional[Iterable] = None) -> list[ServiceItem]:
    """
    Restituisce il catalogo completo: prima i servizi statici, poi quelli
    personalizzati dell'utente marcati con is_custom=True.
    """
    services = list(STATIC_SERVICES)
    for custom_service in custom_services or ():
        services.append(custom_service_to_item(custom_service))
    return services


def get_payment_option(option_id: str) -> Optional[PaymentOptionRead]:
    """Cerca un'opzione di pagamento per ID."""
    for option in PAYMENT_OPTIONS:
        if option.id == option_id:
            return option
    return None
